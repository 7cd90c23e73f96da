from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from core.admin_actions import admin_actions
from core.api import dispatch


@csrf_exempt
@require_POST
def admin_endpoint(request: HttpRequest) -> JsonResponse:
    return dispatch(admin_actions, request)

from django.urls import path

from core import views_admin, views_auth, views_health, views_vote

urlpatterns = [
    path("api/auth", views_auth.auth_endpoint, name="api-auth"),
    path("api/vote", views_vote.vote_endpoint, name="api-vote"),
    path("api/admin", views_admin.admin_endpoint, name="api-admin"),
    path("healthz", views_health.healthz, name="healthz"),
    path("readyz", views_health.readyz, name="readyz"),
]

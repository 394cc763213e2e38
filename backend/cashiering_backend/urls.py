from django.urls import include, path

urlpatterns = [
    path("api/cashiering/", include("cashiering.urls")),
    path("api-auth/", include("rest_framework.urls")),
]

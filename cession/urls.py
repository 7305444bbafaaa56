from django.urls import path

from . import views

urlpatterns = [
    path("", views.cession_list_create, name="cession_list_create"),
    path("<uuid:cession_id>/", views.cession_detail, name="cession_detail"),
    path("<uuid:cession_id>/status/", views.cession_update_status, name="cession_update_status"),
    path("<uuid:cession_id>/send/", views.cession_send, name="cession_send"),
    path("<uuid:cession_id>/document/", views.cession_document, name="cession_document"),
    path("sign/<str:token>/", views.cession_sign, name="cession_sign"),
]

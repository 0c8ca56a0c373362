from django.urls import path

from . import views

urlpatterns = [
    path("", views.chat_view, name="chat"),
    path("chat/<uuid:chat_id>/", views.chat_detail_view, name="chat_detail"),
    path("api/chat", views.chat_api, name="chat_api"),
    path("api/history", views.history_api, name="chat_history_api"),
    path("api/vote", views.vote_api, name="chat_vote_api"),
    path("api/models", views.models_api, name="chat_models_api"),
    path(
        "api/messages/<uuid:message_id>/delete-trailing/",
        views.delete_trailing_messages_api,
        name="chat_delete_trailing_messages",
    ),
    path("api/chat/<uuid:chat_id>/visibility/", views.chat_visibility_api, name="chat_visibility_api"),
    path("api/preferred-model/", views.chat_preferred_model_update, name="chat_preferred_model_update"),
]

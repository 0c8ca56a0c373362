import logging
import uuid
from functools import wraps

from django.contrib.auth.decorators import login_required
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404, render
from django.views.decorators.http import require_GET, require_http_methods, require_POST
from pydantic import ValidationError

from accounts.models import UserSettings

from . import catalog
from .models import Chat
from .schemas import ChatRequest, PreferredModelRequest, VisibilityRequest, VoteRequest
from .services import (
    ChatAccessDenied,
    ChatNotFound,
    ChatService,
    NoUserMessage,
    get_user_chat_model,
    serialize_chat,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR = "An error occurred while processing your request!"
FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def api_login_required(view):
    """Like login_required, but answers 401 instead of redirecting to the login page."""

    @wraps(view)
    def wrapped(request, *args, **kwargs):
        if not request.user.is_authenticated:
            logger.warning("Unauthorized %s %s", request.method, request.path)
            return HttpResponse("Unauthorized", status=401)
        return view(request, *args, **kwargs)

    return wrapped


def _invalid_body(e: Exception) -> JsonResponse:
    logger.info("Invalid request body: %s", e)
    return JsonResponse({"error": "Invalid request body"}, status=400)


def _store_preferred_model(user, model: str) -> None:
    settings_obj, _ = UserSettings.objects.get_or_create(user=user)
    if settings_obj.chat_model != model:
        settings_obj.chat_model = model
        settings_obj.save(update_fields=["chat_model"])


def _render_chat(request, chat: Chat | None, chat_id):
    messages = list(chat.messages.all()) if chat else []
    votes = {}
    if chat:
        votes = {str(v.message_id): v.is_upvoted for v in chat.votes.all()}
    context = {
        "chat_id": str(chat_id),
        "chat": chat,
        "chats": ChatService().history(user=request.user),
        "messages": messages,
        "votes": votes,
        "chat_models": [m.as_dict() for m in catalog.get_models()],
        "selected_model": get_user_chat_model(request.user),
    }
    return render(request, "llm_chat/chat.html", context)


@login_required
def chat_view(request):
    """New chat page. The chat row is created when the first message is sent."""
    return _render_chat(request, None, uuid.uuid4())


@login_required
def chat_detail_view(request, chat_id):
    chat = get_object_or_404(Chat, id=chat_id, user=request.user)
    return _render_chat(request, chat, chat.id)


@require_http_methods(["POST", "DELETE"])
@api_login_required
def chat_api(request):
    if request.method == "DELETE":
        return _delete_chat(request)

    try:
        payload = ChatRequest.model_validate_json(request.body)
    except ValidationError as e:
        return _invalid_body(e)

    try:
        data = ChatService().send_message(
            chat_id=payload.id,
            user=request.user,
            messages=payload.messages,
            selected_model=payload.selected_chat_model,
        )
    except NoUserMessage:
        return HttpResponse("No user message found", status=400)
    except ChatAccessDenied:
        return HttpResponse("Unauthorized", status=401)
    except Exception:
        logger.exception("Error processing chat request")
        return HttpResponse(GENERIC_ERROR, status=500)

    if catalog.is_known_model(payload.selected_chat_model):
        _store_preferred_model(request.user, payload.selected_chat_model)
    return JsonResponse(data)


def _delete_chat(request):
    raw_id = request.GET.get("id")
    try:
        chat_id = uuid.UUID(raw_id or "")
    except ValueError:
        return HttpResponse("Not Found", status=404)

    logger.info("Processing delete request for chat %s", chat_id)
    try:
        ChatService().delete_chat(chat_id=chat_id, user=request.user)
    except ChatNotFound:
        return HttpResponse("Not Found", status=404)
    except ChatAccessDenied:
        return HttpResponse("Unauthorized", status=401)
    except Exception:
        logger.exception("Error deleting chat %s", chat_id)
        return HttpResponse(GENERIC_ERROR, status=500)
    return HttpResponse("Chat deleted", status=200)


@require_GET
@api_login_required
def history_api(request):
    chats = ChatService().history(user=request.user)
    return JsonResponse([serialize_chat(c) for c in chats], safe=False)


@require_http_methods(["GET", "PATCH"])
@api_login_required
def vote_api(request):
    service = ChatService()
    if request.method == "GET":
        try:
            chat_id = uuid.UUID(request.GET.get("chatId") or "")
        except ValueError:
            return HttpResponse("chatId is required", status=400)
        try:
            votes = service.votes_for(chat_id=chat_id, user=request.user)
        except ChatNotFound:
            return HttpResponse("Not Found", status=404)
        except ChatAccessDenied:
            return HttpResponse("Unauthorized", status=401)
        return JsonResponse(votes, safe=False)

    try:
        payload = VoteRequest.model_validate_json(request.body)
    except ValidationError as e:
        return _invalid_body(e)
    try:
        service.vote(
            chat_id=payload.chat_id,
            message_id=payload.message_id,
            user=request.user,
            up=payload.type == "up",
        )
    except ChatNotFound:
        return HttpResponse("Not Found", status=404)
    except ChatAccessDenied:
        return HttpResponse("Unauthorized", status=401)
    return HttpResponse("Message voted", status=200)


@require_POST
@api_login_required
def delete_trailing_messages_api(request, message_id):
    deleted = ChatService().delete_trailing_messages(message_id=message_id, user=request.user)
    return JsonResponse({"deleted": deleted})


@require_POST
@api_login_required
def chat_visibility_api(request, chat_id):
    try:
        payload = VisibilityRequest.model_validate_json(request.body)
    except ValidationError as e:
        return _invalid_body(e)
    try:
        chat = ChatService().update_visibility(
            chat_id=chat_id, user=request.user, visibility=payload.visibility
        )
    except ChatNotFound:
        return HttpResponse("Not Found", status=404)
    except ChatAccessDenied:
        return HttpResponse("Unauthorized", status=401)
    return JsonResponse({"id": str(chat.id), "visibility": chat.visibility})


@require_http_methods(["GET", "POST"])
@api_login_required
def chat_preferred_model_update(request):
    """GET: current preferred model. POST: store it (form field or JSON {"model": ...})."""
    if request.method == "GET":
        return JsonResponse({"model": get_user_chat_model(request.user)})
    if request.content_type in FORM_CONTENT_TYPES:
        model = request.POST.get("model") or ""
    elif request.body:
        try:
            model = PreferredModelRequest.model_validate_json(request.body).model
        except (ValidationError, UnicodeDecodeError) as e:
            return _invalid_body(e)
    else:
        model = ""
    model = model.strip()
    if not model:
        return JsonResponse({"error": "Missing model"}, status=400)
    if not catalog.is_known_model(model):
        return JsonResponse({"error": "Model not allowed"}, status=400)
    _store_preferred_model(request.user, model)
    return JsonResponse({"model": model})


@require_GET
def models_api(request):
    return JsonResponse({"models": [m.as_dict() for m in catalog.get_models()]})

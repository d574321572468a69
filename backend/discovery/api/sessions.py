"""
Session API endpoints - Live practice sessions with resume, hints and streaming replies.

Each client has one session slot. The live session sits in the in-memory
registry; its transcript is also persisted so it can be resumed within the
expiry window after a restart or reconnect.
"""

import json
import logging
from dataclasses import asdict
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from ..config import settings
from ..core import (
    AsyncioTimerScheduler, SessionEndedError, TrainingSession, derive_session_state,
    get_completion_status, get_display_content_if_end_meeting,
)
from ..core.errors import (
    HINT_NOT_ACTIVE, INVALID_SCENARIO, NO_HINTS_LEFT, NO_PENDING_TURN, NO_SESSION, REPLY_IN_PROGRESS,
    SERVICE_UNAVAILABLE, SESSION_ENDED, TOO_MANY_MESSAGES, describe_error,
)
from ..llm import CompletionService, CompletionUnavailableError
from ..models import (
    ActiveHint, EvaluateRequest, HintPanel, Scenario, SessionEvaluation, SessionSnapshot, StartSessionRequest,
    UserTurnRequest,
)
from .deps import AppServices, enforce_rate_limit, get_client_key, get_services, require_completion
from .validation import validate_scenario_id, validate_user_content

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _sse(event: dict) -> str:
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


def _new_session(scenario: Scenario, messages=None) -> TrainingSession:
    return TrainingSession(
        scenario,
        messages=messages,
        scheduler=AsyncioTimerScheduler(),
        default_max_turns=settings.default_max_turns,
    )


async def _load_scenario(services: AppServices, scenario_id: Optional[str]) -> Scenario:
    scenario = await services.scenarios.get(validate_scenario_id(scenario_id))
    if scenario is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_SCENARIO)
    return scenario


async def _persist(live: TrainingSession, client_key: str, services: AppServices) -> None:
    """Save the transcript and restart the live entry's expiry window."""
    await services.sessions.save(client_key, live.scenario.id, live.messages)
    services.registry.touch(client_key)


async def _live_session(client_key: str, services: AppServices) -> Optional[TrainingSession]:
    """Live session for the client, resuming a persisted one if needed."""
    live = services.registry.get(client_key)
    if live is not None:
        return live

    stored = await services.sessions.load(client_key)
    if stored is None:
        return None

    scenario = await services.scenarios.get(stored.scenario_id)
    if scenario is None:
        logger.warning(f"Stored session references unknown scenario {stored.scenario_id}; discarding")
        await services.sessions.clear(client_key)
        return None

    live = _new_session(scenario, stored.messages)
    logger.info(
        "Session resumed",
        extra={"extra_fields": {"scenario_id": scenario.id, "message_count": len(stored.messages)}}
    )
    return services.registry.put(client_key, live)


async def _require_live_session(request: Request, services: AppServices) -> TrainingSession:
    live = await _live_session(get_client_key(request), services)
    if live is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NO_SESSION)
    return live


async def _reply_events(
    live: TrainingSession,
    stream: AsyncIterator[str],
    client_key: str,
    services: AppServices,
) -> AsyncIterator[str]:
    """
    Relay reply chunks as SSE events.

    The assistant message is only recorded once the stream is complete, so
    the end marker is never parsed from partial text.
    """
    chunks = []
    try:
        try:
            async for chunk in stream:
                chunks.append(chunk)
                yield _sse({"type": "content", "content": chunk})
        except Exception as e:
            logger.error(f"Reply stream failed: {e}", exc_info=True)
            yield _sse({
                "type": "error",
                "error": SERVICE_UNAVAILABLE,
                "guidance": asdict(describe_error(SERVICE_UNAVAILABLE)),
            })
            return

        reply = "".join(chunks)
        if not reply.strip():
            logger.warning(f"Empty reply for scenario {live.scenario.id}")
            yield _sse({
                "type": "error",
                "error": SERVICE_UNAVAILABLE,
                "guidance": asdict(describe_error(SERVICE_UNAVAILABLE)),
            })
            return

        live.add_assistant_message(reply)
        await _persist(live, client_key, services)
        yield _sse({"type": "done", "snapshot": live.snapshot().model_dump(mode="json")})
    finally:
        live.reply_in_progress = False


async def _start_reply(
    live: TrainingSession,
    client_key: str,
    services: AppServices,
    completion: CompletionService,
) -> StreamingResponse:
    live.reply_in_progress = True
    try:
        stream = await completion.open_stream(live.scenario.system_prompt, live.messages)
    except CompletionUnavailableError:
        live.reply_in_progress = False
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=SERVICE_UNAVAILABLE)
    except Exception:
        live.reply_in_progress = False
        raise

    return StreamingResponse(
        _reply_events(live, stream, client_key, services),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        }
    )


@router.post("/evaluate", response_model=SessionEvaluation)
async def evaluate_transcript(
    body: EvaluateRequest,
    services: AppServices = Depends(get_services),
):
    """
    Derive completion and session state for a transcript held by the client.

    The end marker is only read from the latest message, and only if it is an
    assistant reply.
    """
    scenario = await _load_scenario(services, body.scenario_id)
    if len(body.messages) > settings.chat_max_messages:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=TOO_MANY_MESSAGES)

    messages = body.messages
    end_meeting = None
    if messages and messages[-1].role == "assistant":
        end_meeting = get_display_content_if_end_meeting(messages[-1].content)
    meeting_ended = bool(end_meeting and end_meeting.meeting_ended)

    return SessionEvaluation(
        state=derive_session_state(
            messages,
            scenario.effective_max_turns(settings.default_max_turns),
            ended_by_control_signal=meeting_ended,
        ),
        completion=get_completion_status(scenario.required_details, messages),
        meeting_ended=meeting_ended,
        final_message=end_meeting.final_message if end_meeting else None,
    )


@router.post("", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
async def start_session(
    body: StartSessionRequest,
    request: Request,
    services: AppServices = Depends(get_services),
):
    """Start a new session for a scenario, replacing the client's current one."""
    scenario = await _load_scenario(services, body.scenario_id)
    client_key = get_client_key(request)

    live = services.registry.put(client_key, _new_session(scenario))
    await _persist(live, client_key, services)
    logger.info(f"Session started for scenario {scenario.id}")
    return live.snapshot()


@router.get("/current", response_model=SessionSnapshot)
async def get_current_session(
    request: Request,
    services: AppServices = Depends(get_services),
):
    """Current session snapshot, resuming from storage when still fresh."""
    live = await _require_live_session(request, services)
    return live.snapshot()


@router.post("/current/messages", dependencies=[Depends(enforce_rate_limit)])
async def send_message(
    body: UserTurnRequest,
    request: Request,
    services: AppServices = Depends(get_services),
    completion: CompletionService = Depends(require_completion),
):
    """
    Submit a user turn and stream the persona's reply.

    SSE events: ``content`` chunks, then ``done`` with the new snapshot, or
    ``error``. The user message is kept even when the reply fails.
    """
    live = await _require_live_session(request, services)
    if live.reply_in_progress:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=REPLY_IN_PROGRESS)

    content = validate_user_content(body.content, settings.chat_max_message_length)
    try:
        live.add_user_message(content)
    except SessionEndedError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=SESSION_ENDED)

    client_key = get_client_key(request)
    await _persist(live, client_key, services)
    return await _start_reply(live, client_key, services, completion)


@router.post("/current/reply", dependencies=[Depends(enforce_rate_limit)])
async def retry_reply(
    request: Request,
    services: AppServices = Depends(get_services),
    completion: CompletionService = Depends(require_completion),
):
    """Ask again for the reply to the last user message after a failed attempt."""
    live = await _require_live_session(request, services)
    if live.reply_in_progress:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=REPLY_IN_PROGRESS)

    messages = live.messages
    if not messages or messages[-1].role != "user":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=NO_PENDING_TURN)

    return await _start_reply(live, get_client_key(request), services, completion)


@router.get("/current/hints", response_model=HintPanel)
async def get_hints(
    request: Request,
    services: AppServices = Depends(get_services),
):
    live = await _require_live_session(request, services)
    return HintPanel(
        visible_hints=live.hints.visible_hints,
        remaining_manual_hints=live.hints.remaining_manual_hints,
    )


@router.post("/current/hints", response_model=ActiveHint)
async def request_hint(
    request: Request,
    services: AppServices = Depends(get_services),
):
    """Reveal one random unused manual hint."""
    live = await _require_live_session(request, services)
    active = live.hints.request_manual_hint()
    if active is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NO_HINTS_LEFT)
    return active


@router.post("/current/hints/{hint_id}/dismiss", response_model=HintPanel)
async def dismiss_hint(
    hint_id: str,
    request: Request,
    services: AppServices = Depends(get_services),
):
    """Dismiss an active hint; it will not come back this session."""
    live = await _require_live_session(request, services)
    if not live.hints.dismiss(hint_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=HINT_NOT_ACTIVE)
    return HintPanel(
        visible_hints=live.hints.visible_hints,
        remaining_manual_hints=live.hints.remaining_manual_hints,
    )


@router.delete("/current")
async def end_session(
    request: Request,
    services: AppServices = Depends(get_services),
):
    """Leave the session: stop hint timers and forget the saved transcript."""
    client_key = get_client_key(request)
    discarded = services.registry.discard(client_key)
    cleared = await services.sessions.clear(client_key)
    return {"cleared": discarded or cleared}

"""
Pure interaction reducer.

(state, event) -> (new_state, commands)

Rules:
- Pure: no side effects, no IO, no clocks.
- Deterministic: output depends only on inputs.
- Total: every (state, event) pair is handled or explicitly ignored (logged).
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from orchestrator.commands import (
    ApplyStepDelta,
    CancelResolution,
    CancelUtterance,
    Command,
    CommitTurn,
    LogEvent,
    NotifyClient,
    ResolveTranscript,
    StartCapture,
    StartUtterance,
    StopCapture,
)
from orchestrator.enums.service import Service
from orchestrator.enums.state import State
from orchestrator.events import (
    CapabilityProbed,
    CaptureEnded,
    CaptureError,
    CaptureResult,
    CaptureStarted,
    Event,
    ResolutionCompleted,
    ServiceEvent,
    SessionEnded,
    SessionStarted,
    SetMute,
    SpeakRequested,
    StepRequested,
    StopListening,
    StopSpeaking,
    TextSubmitted,
    ToggleListening,
    UtteranceEnded,
    UtteranceError,
    UtteranceStarted,
    VoicesChanged,
)
from orchestrator.run_ids import RunIds
from orchestrator.state_dataclass import CoordinatorState


# =============================================================================
# Invariants
# =============================================================================
# - LISTENING and SPEAKING are never both true; speaking stops capture first.
# - Run IDs are bumped ONLY on a new start, or when a run is superseded
#   and its late output must be discarded.
# - An explicit user stop of capture keeps the run id, so a transcript
#   already in flight is still delivered.
# - Stopping playback keeps the run id, so a late UtteranceStarted for the
#   stopped utterance is still recognised and cancelled.

# Client message types
MSG_STATE_CHANGED = "STATE_CHANGED"
MSG_ANSWER = "ANSWER"
MSG_CAPABILITY = "CAPABILITY"


# =============================================================================
# Small helpers
# =============================================================================

def _bump_run_id(active_runs: RunIds, service: Service) -> RunIds:
    if service is Service.CAPTURE:
        return replace(active_runs, capture=active_runs.capture + 1)
    if service is Service.PLAYBACK:
        return replace(active_runs, playback=active_runs.playback + 1)
    if service is Service.RESOLVER:
        return replace(active_runs, resolver=active_runs.resolver + 1)
    raise ValueError(service)


def _active_run_for(active_runs: RunIds, service: Service) -> int:
    if service is Service.CAPTURE:
        return active_runs.capture
    if service is Service.PLAYBACK:
        return active_runs.playback
    if service is Service.RESOLVER:
        return active_runs.resolver
    raise ValueError(service)


def _log(
    state: CoordinatorState,
    event: Event,
    decision: str,
    details: dict[str, Any] | None = None,
) -> LogEvent:
    return LogEvent(
        event={
            "ts_ms": event.ts_ms,
            "state": state.state.value,
            "event_type": event.event_type.value,
            "decision": decision,
            "run_ids": {
                "capture": state.active_runs.capture,
                "playback": state.active_runs.playback,
                "resolver": state.active_runs.resolver,
            },
            "desired_listening": state.desired_listening,
            "muted": state.muted,
            "details": details or {},
        }
    )


def _logs_last(commands: tuple[Command, ...]) -> tuple[Command, ...]:
    non_logs: list[Command] = []
    logs: list[Command] = []
    state_change_logs: list[Command] = []

    for command in commands:
        if isinstance(command, LogEvent):
            if command.event.get("decision") == "state_changed":
                state_change_logs.append(command)
            else:
                logs.append(command)
        else:
            non_logs.append(command)

    return tuple(non_logs + logs + state_change_logs)


def _ignore(
    state: CoordinatorState, event: Event, reason: str
) -> tuple[CoordinatorState, tuple[Command, ...]]:
    return state, (_log(state, event, "ignore", {"reason": reason}),)


def _state_payload(state: CoordinatorState) -> dict[str, Any]:
    return {
        "state": state.state.value,
        "desired_listening": state.desired_listening,
        "muted": state.muted,
    }


def _finish(
    old: CoordinatorState,
    new: CoordinatorState,
    event: Event,
    source: str,
    cmds: list[Command],
) -> tuple[CoordinatorState, tuple[Command, ...]]:
    """
    Close a transition.

    Appends the state_changed log and a STATE_CHANGED client message when
    anything the client displays (state, desired_listening, muted) changed.
    """
    if _state_payload(old) != _state_payload(new):
        cmds.append(NotifyClient(MSG_STATE_CHANGED, _state_payload(new)))
        cmds.append(
            _log(
                new,
                event,
                "state_changed",
                {
                    "from_state": old.state.value,
                    "to_state": new.state.value,
                    "source": source,
                },
            )
        )
    return new, _logs_last(tuple(cmds))


def _halt_capture(
    state: CoordinatorState,
    event: Event,
    cmds: list[Command],
    *,
    supersede: bool,
) -> CoordinatorState:
    """
    Stop capture and drop the standing listening intent.

    supersede=True also bumps the capture run so a late transcript from the
    halted run is discarded (it may contain the assistant's own voice).
    """
    run_id = state.active_runs.capture
    cmds.append(_log(state, event, "stop_capture", {"capture_run_id": run_id}))
    cmds.append(StopCapture(run_id=run_id))
    new_runs = state.active_runs
    if supersede:
        new_runs = _bump_run_id(new_runs, Service.CAPTURE)
    return replace(state, desired_listening=False, active_runs=new_runs)


def _cancel_playback(
    state: CoordinatorState,
    event: Event,
    cmds: list[Command],
) -> None:
    run_id = state.active_runs.playback
    cmds.append(_log(state, event, "cancel_utterance", {"playback_run_id": run_id}))
    cmds.append(CancelUtterance(run_id=run_id))


def _start_capture(
    state: CoordinatorState,
    event: Event,
    cmds: list[Command],
    source: str,
) -> CoordinatorState:
    new_runs = _bump_run_id(state.active_runs, Service.CAPTURE)
    new_state = replace(
        state,
        state=State.LISTENING,
        desired_listening=True,
        active_runs=new_runs,
    )
    cmds.append(
        _log(
            new_state,
            event,
            "start_capture",
            {"capture_run_id": new_runs.capture, "source": source},
        )
    )
    cmds.append(StartCapture(run_id=new_runs.capture))
    return new_state


def _start_utterance(
    state: CoordinatorState,
    event: Event,
    cmds: list[Command],
    text: str,
    source: str,
) -> CoordinatorState:
    new_runs = _bump_run_id(state.active_runs, Service.PLAYBACK)
    new_state = replace(state, state=State.SPEAKING, active_runs=new_runs)
    cmds.append(
        _log(
            new_state,
            event,
            "start_utterance",
            {
                "playback_run_id": new_runs.playback,
                "voice_id": state.voice_id,
                "text_len": len(text),
                "source": source,
            },
        )
    )
    cmds.append(
        StartUtterance(
            run_id=new_runs.playback,
            text=text,
            voice_id=state.voice_id,
        )
    )
    return new_state


def _start_resolution(
    state: CoordinatorState,
    event: Event,
    cmds: list[Command],
    text: str,
    source: str,
) -> CoordinatorState:
    new_runs = _bump_run_id(state.active_runs, Service.RESOLVER)
    new_state = replace(
        state,
        state=State.PROCESSING,
        active_runs=new_runs,
        pending_user_text=text,
    )
    cmds.append(
        _log(
            new_state,
            event,
            "resolve_transcript",
            {
                "resolver_run_id": new_runs.resolver,
                "turn_id": state.turn_id,
                "text_len": len(text),
                "source": source,
            },
        )
    )
    cmds.append(
        ResolveTranscript(
            run_id=new_runs.resolver,
            turn_id=state.turn_id,
            text=text,
        )
    )
    return new_state


def _report_capability(
    state: CoordinatorState,
    event: Event,
    cmds: list[Command],
    capability: Service,
    reason: str,
) -> CoordinatorState:
    """Tell the client a capability is missing, at most once per engine."""
    if capability is Service.CAPTURE:
        if state.capture_unsupported_reported:
            return state
        state = replace(state, capture_unsupported_reported=True)
    else:
        if state.playback_unsupported_reported:
            return state
        state = replace(state, playback_unsupported_reported=True)

    cmds.append(
        NotifyClient(
            MSG_CAPABILITY,
            {
                "capability": capability.value.lower(),
                "supported": False,
                "reason": reason,
            },
        )
    )
    cmds.append(
        _log(
            state,
            event,
            "capability_unavailable",
            {"capability": capability.value, "reason": reason},
        )
    )
    return state


def _is_stale(state: CoordinatorState, event: ServiceEvent) -> bool:
    return event.run_id != _active_run_for(state.active_runs, event.service)


# =============================================================================
# Reducer entrypoint
# =============================================================================

def reduce(
    state: CoordinatorState, event: Event
) -> tuple[CoordinatorState, tuple[Command, ...]]:
    """
    Pure reducer for the interaction state machine.

    Given the current coordinator state and a single event, returns:
    - the next state
    - a tuple of commands describing required side effects

    Properties:
    - Deterministic: no IO, clocks, or randomness
    - Total: every (state, event) pair is handled or explicitly ignored
    - Version-safe: ignores events with stale run IDs
    """
    # ------------------------------------------------------------------
    # Stale gating (all service-scoped events)
    # ------------------------------------------------------------------
    if isinstance(event, ServiceEvent) and _is_stale(state, event):
        return _ignore(
            state,
            event,
            f"{event.service.value.lower()}_stale",
        )

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------
    if isinstance(event, SessionStarted):
        return state, (
            _log(state, event, "session_started", {"session_id": event.session_id}),
        )

    if isinstance(event, SessionEnded):
        return _reduce_session_ended(state, event)

    if isinstance(event, CapabilityProbed):
        return _reduce_capability_probed(state, event)

    if isinstance(event, VoicesChanged):
        return (
            replace(state, voice_id=event.voice_id),
            (
                _log(
                    state,
                    event,
                    "voice_selected",
                    {
                        "voice_id": event.voice_id,
                        "voice_count": event.voice_count,
                    },
                ),
            ),
        )

    # ------------------------------------------------------------------
    # State-independent user control
    # ------------------------------------------------------------------
    if isinstance(event, SetMute):
        return _reduce_set_mute(state, event)

    if isinstance(event, StopSpeaking):
        if state.state is not State.SPEAKING:
            return state, (_log(state, event, "stop_speaking_noop"),)
        cmds: list[Command] = []
        _cancel_playback(state, event, cmds)
        return _finish(
            state, replace(state, state=State.IDLE), event, "stop_speaking", cmds
        )

    if isinstance(event, StopListening):
        if state.state is not State.LISTENING:
            return state, (_log(state, event, "stop_listening_noop"),)
        cmds = []
        new_state = _halt_capture(state, event, cmds, supersede=False)
        return _finish(
            state,
            replace(new_state, state=State.IDLE),
            event,
            "stop_listening",
            cmds,
        )

    if isinstance(event, SpeakRequested):
        return _reduce_speak_requested(state, event)

    if isinstance(event, TextSubmitted):
        return _reduce_text_submitted(state, event)

    if isinstance(event, StepRequested):
        if event.delta == 0:
            return _ignore(state, event, "zero_step_delta")
        return state, _logs_last((
            ApplyStepDelta(delta=event.delta, source="client"),
            _log(state, event, "apply_step_delta", {"delta": event.delta}),
        ))

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------
    if isinstance(event, ResolutionCompleted):
        return _reduce_resolution_completed(state, event)

    # ------------------------------------------------------------------
    # Playback callbacks
    # ------------------------------------------------------------------
    if isinstance(event, UtteranceStarted):
        if state.muted or state.state is not State.SPEAKING:
            cmds = []
            _cancel_playback(state, event, cmds)
            cmds.append(
                _log(
                    state,
                    event,
                    "utterance_cancelled_on_start",
                    {"muted": state.muted},
                )
            )
            return _finish(
                state,
                replace(state, state=State.IDLE)
                if state.state is State.SPEAKING else state,
                event,
                "utterance_started_while_muted",
                cmds,
            )
        return state, (_log(state, event, "utterance_started"),)

    if isinstance(event, (UtteranceEnded, UtteranceError)):
        return _reduce_utterance_finished(state, event)

    # ============================
    # IDLE
    # ============================
    if state.state is State.IDLE:
        if isinstance(event, ToggleListening):
            if not state.capture_supported:
                cmds = []
                new_state = _report_capability(
                    state, event, cmds, Service.CAPTURE, "unsupported"
                )
                if not cmds:
                    return _ignore(state, event, "capture_unsupported")
                return new_state, _logs_last(tuple(cmds))

            cmds = []
            new_state = _start_capture(state, event, cmds, "toggle_listening")
            return _finish(state, new_state, event, "toggle_listening", cmds)

        if isinstance(event, CaptureResult):
            # Delivered after an explicit stop: the run id was kept for this.
            return _accept_transcript(state, event)

        if isinstance(event, (CaptureStarted, CaptureEnded)):
            return state, (_log(state, event, "capture_callback_in_idle"),)

        if isinstance(event, CaptureError):
            return _reduce_capture_error(state, event)

        return _ignore(state, event, "idle_unhandled")

    # ============================
    # LISTENING
    # ============================
    if state.state is State.LISTENING:
        if isinstance(event, ToggleListening):
            cmds = []
            new_state = _halt_capture(state, event, cmds, supersede=False)
            return _finish(
                state,
                replace(new_state, state=State.IDLE),
                event,
                "toggle_listening",
                cmds,
            )

        if isinstance(event, CaptureStarted):
            return state, (_log(state, event, "capture_started"),)

        if isinstance(event, CaptureResult):
            return _accept_transcript(state, event)

        if isinstance(event, CaptureEnded):
            return _reduce_capture_end(state, event, event.reason)

        if isinstance(event, CaptureError):
            return _reduce_capture_error(state, event)

        return _ignore(state, event, "listening_unhandled")

    # ============================
    # PROCESSING
    # ============================
    if state.state is State.PROCESSING:
        if isinstance(event, ToggleListening):
            return _ignore(state, event, "toggle_noop_while_processing")

        if isinstance(event, CaptureError):
            return _reduce_capture_error(state, event)

        return _ignore(state, event, "processing_unhandled")

    # ============================
    # SPEAKING
    # ============================
    if state.state is State.SPEAKING:
        if isinstance(event, ToggleListening):
            return _ignore(state, event, "toggle_noop_while_speaking")

        if isinstance(event, CaptureError):
            return _reduce_capture_error(state, event)

        return _ignore(state, event, "speaking_unhandled")

    return _ignore(state, event, "unhandled")


# =============================================================================
# Handlers
# =============================================================================

def _reduce_session_ended(
    state: CoordinatorState, event: SessionEnded
) -> tuple[CoordinatorState, tuple[Command, ...]]:
    cmds: list[Command] = []
    new_state = state

    if state.state is State.LISTENING:
        new_state = _halt_capture(new_state, event, cmds, supersede=True)
    elif state.state is State.SPEAKING:
        _cancel_playback(new_state, event, cmds)
        new_state = replace(
            new_state,
            active_runs=_bump_run_id(new_state.active_runs, Service.PLAYBACK),
        )
    elif state.state is State.PROCESSING:
        run_id = state.active_runs.resolver
        cmds.append(CancelResolution(run_id=run_id))
        new_state = replace(
            new_state,
            active_runs=_bump_run_id(new_state.active_runs, Service.RESOLVER),
        )

    new_state = replace(
        new_state,
        state=State.IDLE,
        desired_listening=False,
        pending_user_text="",
    )
    cmds.append(_log(new_state, event, "session_ended", {"session_id": event.session_id}))
    return _finish(state, new_state, event, "session_ended", cmds)


def _reduce_capability_probed(
    state: CoordinatorState, event: CapabilityProbed
) -> tuple[CoordinatorState, tuple[Command, ...]]:
    new_state = replace(
        state,
        capture_supported=event.capture_supported,
        playback_supported=event.playback_supported,
        capture_unsupported_reported=(
            state.capture_unsupported_reported or not event.capture_supported
        ),
        playback_unsupported_reported=(
            state.playback_unsupported_reported or not event.playback_supported
        ),
    )
    return new_state, _logs_last((
        NotifyClient(
            MSG_CAPABILITY,
            {
                "capture_supported": event.capture_supported,
                "playback_supported": event.playback_supported,
            },
        ),
        _log(
            new_state,
            event,
            "capability_probed",
            {
                "capture_supported": event.capture_supported,
                "playback_supported": event.playback_supported,
            },
        ),
    ))


def _reduce_set_mute(
    state: CoordinatorState, event: SetMute
) -> tuple[CoordinatorState, tuple[Command, ...]]:
    cmds: list[Command] = []
    new_state = replace(state, muted=event.muted)

    if event.muted and state.state is State.SPEAKING:
        _cancel_playback(state, event, cmds)
        new_state = replace(new_state, state=State.IDLE)

    cmds.append(_log(new_state, event, "set_mute", {"muted": event.muted}))
    return _finish(state, new_state, event, "set_mute", cmds)


def _reduce_speak_requested(
    state: CoordinatorState, event: SpeakRequested
) -> tuple[CoordinatorState, tuple[Command, ...]]:
    if state.muted:
        return state, (_log(state, event, "speak_noop_muted"),)

    if not event.text.strip():
        return _ignore(state, event, "speak_empty_text")

    cmds: list[Command] = []

    if not state.playback_supported:
        new_state = _report_capability(
            state, event, cmds, Service.PLAYBACK, "unsupported"
        )
        if not cmds:
            return _ignore(state, event, "playback_unsupported")
        return new_state, _logs_last(tuple(cmds))

    new_state = state
    if state.state is State.LISTENING:
        new_state = _halt_capture(new_state, event, cmds, supersede=True)
    elif state.state is State.SPEAKING:
        _cancel_playback(new_state, event, cmds)
    elif state.state is State.PROCESSING:
        cmds.append(CancelResolution(run_id=state.active_runs.resolver))
        new_state = replace(
            new_state,
            active_runs=_bump_run_id(new_state.active_runs, Service.RESOLVER),
            pending_user_text="",
        )

    new_state = _start_utterance(new_state, event, cmds, event.text, "speak_requested")
    return _finish(state, new_state, event, "speak_requested", cmds)


def _reduce_text_submitted(
    state: CoordinatorState, event: TextSubmitted
) -> tuple[CoordinatorState, tuple[Command, ...]]:
    text = event.text.strip()
    if not text:
        return _ignore(state, event, "text_empty")

    if state.state is State.PROCESSING:
        return _ignore(state, event, "resolution_in_flight")

    cmds: list[Command] = []
    new_state = state
    if state.state is State.LISTENING:
        new_state = _halt_capture(new_state, event, cmds, supersede=True)
    elif state.state is State.SPEAKING:
        _cancel_playback(new_state, event, cmds)

    new_state = _start_resolution(new_state, event, cmds, text, "text_submitted")
    return _finish(state, new_state, event, "text_submitted", cmds)


def _accept_transcript(
    state: CoordinatorState, event: CaptureResult
) -> tuple[CoordinatorState, tuple[Command, ...]]:
    text = event.text.strip()
    if not text:
        return _reduce_capture_end(state, event, "empty_transcript")

    cmds: list[Command] = []
    new_state = state
    if state.state is State.LISTENING:
        # Push-to-talk-once: a transcript ends the standing intent.
        new_state = _halt_capture(new_state, event, cmds, supersede=False)
    cmds.append(_log(state, event, "transcript_accepted", {"text_len": len(text)}))

    new_state = _start_resolution(new_state, event, cmds, text, "capture_result")
    return _finish(state, new_state, event, "capture_result", cmds)


def _reduce_capture_end(
    state: CoordinatorState, event: ServiceEvent, reason: str
) -> tuple[CoordinatorState, tuple[Command, ...]]:
    if state.state is not State.LISTENING:
        return state, (_log(state, event, "capture_end_not_listening", {"reason": reason}),)

    cmds: list[Command] = []
    if state.desired_listening:
        new_state = _start_capture(state, event, cmds, f"auto_restart:{reason}")
        return _finish(state, new_state, event, "capture_auto_restart", cmds)

    cmds.append(_log(state, event, "capture_ended", {"reason": reason}))
    return _finish(
        state, replace(state, state=State.IDLE), event, "capture_ended", cmds
    )


def _reduce_capture_error(
    state: CoordinatorState, event: CaptureError
) -> tuple[CoordinatorState, tuple[Command, ...]]:
    if not event.fatal:
        return _reduce_capture_end(state, event, event.reason)

    cmds: list[Command] = []
    new_state = replace(
        state,
        capture_supported=False,
        desired_listening=False,
        last_error=event.reason,
    )
    new_state = _report_capability(new_state, event, cmds, Service.CAPTURE, event.reason)
    if state.state is State.LISTENING:
        new_state = replace(new_state, state=State.IDLE)
    return _finish(state, new_state, event, "capture_fatal_error", cmds)


def _reduce_utterance_finished(
    state: CoordinatorState, event: UtteranceEnded | UtteranceError
) -> tuple[CoordinatorState, tuple[Command, ...]]:
    cmds: list[Command] = []
    new_state = state

    if isinstance(event, UtteranceError):
        new_state = replace(new_state, last_error=event.reason)
        cmds.append(
            _log(
                new_state,
                event,
                "utterance_error",
                {"reason": event.reason, "fatal": event.fatal},
            )
        )
        if event.fatal:
            new_state = replace(new_state, playback_supported=False)
            new_state = _report_capability(
                new_state, event, cmds, Service.PLAYBACK, event.reason
            )
    else:
        cmds.append(_log(new_state, event, "utterance_ended"))

    if state.state is State.SPEAKING:
        new_state = replace(new_state, state=State.IDLE)
    return _finish(state, new_state, event, "utterance_finished", cmds)


def _reduce_resolution_completed(
    state: CoordinatorState, event: ResolutionCompleted
) -> tuple[CoordinatorState, tuple[Command, ...]]:
    if state.state is not State.PROCESSING:
        return _ignore(state, event, "resolution_not_processing")

    answer = event.answer
    cmds: list[Command] = []

    if answer.step_delta != 0:
        cmds.append(ApplyStepDelta(delta=answer.step_delta, source=answer.source.value))

    cmds.append(
        CommitTurn(
            turn_id=state.turn_id,
            user_text=state.pending_user_text,
            assistant_text=answer.response_text,
        )
    )

    # Mute is read here, at completion time, not at request time.
    spoken = (
        not answer.silent
        and not state.muted
        and state.playback_supported
        and bool(answer.response_text.strip())
    )

    cmds.append(
        NotifyClient(
            MSG_ANSWER,
            {
                "turn_id": state.turn_id,
                "user_text": state.pending_user_text,
                "text": answer.response_text,
                "step_delta": answer.step_delta,
                "source": answer.source.value,
                "spoken": spoken,
            },
        )
    )
    cmds.append(
        _log(
            state,
            event,
            "resolution_completed",
            {
                "turn_id": state.turn_id,
                "source": answer.source.value,
                "step_delta": answer.step_delta,
                "spoken": spoken,
            },
        )
    )

    new_state = replace(
        state,
        turn_id=state.turn_id + 1,
        pending_user_text="",
    )

    if spoken:
        new_state = _start_utterance(
            new_state, event, cmds, answer.response_text, "resolution_completed"
        )
    else:
        new_state = replace(new_state, state=State.IDLE)

    return _finish(state, new_state, event, "resolution_completed", cmds)

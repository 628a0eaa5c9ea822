from core.exceptions import AlreadyPaused, AlreadyRetired, NotActive, NotPaused
from models.vaults import LifecycleState


def require_active(state: LifecycleState) -> None:
    if state != LifecycleState.active:
        raise NotActive(f"vault is {state.value}")


def pause_transition(state: LifecycleState) -> LifecycleState:
    if state != LifecycleState.active:
        raise AlreadyPaused(f"vault is {state.value}")
    return LifecycleState.paused


def unpause_transition(state: LifecycleState) -> LifecycleState:
    if state != LifecycleState.paused:
        raise NotPaused(f"vault is {state.value}")
    return LifecycleState.active


def panic_transition(state: LifecycleState) -> LifecycleState:
    return pause_transition(state)


def retire_transition(state: LifecycleState) -> LifecycleState:
    # reachable from both active and paused
    if state == LifecycleState.retired:
        raise AlreadyRetired("vault is already retired")
    return LifecycleState.retired

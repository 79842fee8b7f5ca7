"""
Destruction Registry
--------------------

Ordered teardown callbacks registered by arbitrary subsystems and run exactly
once by the orchestrator during post_main_message_loop_run().

Entries live in an append-only arena of slots. A registration returns a
DestructionToken addressing its slot by (generation, index); cancelling marks
the slot inert instead of erasing it, so a pass in progress never sees the
sequence shift under it. After the outermost run_all() pass the arena is
cleared and the generation bumped, which turns every outstanding token into
a no-op.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, List, Optional

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SHUTDOWN)

DestructionCallback = Callable[[], None]


class SlotState(Enum):
    PENDING = auto()
    CANCELLED = auto()
    EXECUTED = auto()


@dataclass
class _Slot:
    callback: Optional[DestructionCallback]
    state: SlotState = SlotState.PENDING


class DestructionToken:
    """
    Handle returned by DestructionRegistry.register().

    Calling the token (or cancel()) removes the entry if it has not run yet.
    Cancelling after execution, cancelling twice, or cancelling after the
    registry was compacted is harmless.
    """

    __slots__ = ("_registry", "_generation", "_index")

    def __init__(self, registry: "DestructionRegistry", generation: int, index: int):
        self._registry = registry
        self._generation = generation
        self._index = index

    def cancel(self) -> bool:
        """Returns True if a pending entry was cancelled."""
        return self._registry._cancel(self._generation, self._index)

    def __call__(self) -> bool:
        return self.cancel()

    @property
    def pending(self) -> bool:
        """True while the addressed entry is still waiting to run."""
        return self._registry._state_of(self._generation, self._index) is SlotState.PENDING

    def __repr__(self) -> str:
        return f"DestructionToken(generation={self._generation}, index={self._index})"


class DestructionRegistry:
    """
    Ordered list of teardown callbacks with cancellable registration tokens.

    Not synchronized: register, cancel and run_all must be called from the
    control thread.

    Example:
        registry = DestructionRegistry()
        token = registry.register(cache.flush)
        registry.register(database.close)

        token.cancel()          # cache.flush will not run
        registry.run_all()      # database.close runs once
    """

    def __init__(self) -> None:
        self._slots: List[_Slot] = []
        self._generation = 0
        self._pass_depth = 0

    def register(self, callback: DestructionCallback) -> DestructionToken:
        """
        Append ``callback`` at the tail of the sequence.

        Args:
            callback: Zero-argument callable, expected not to raise

        Returns:
            Token that cancels exactly this entry
        """
        if not callable(callback):
            raise TypeError(f"Destruction callback must be callable, got {callback!r}")

        self._slots.append(_Slot(callback))
        index = len(self._slots) - 1
        log.debug(
            "Registered destruction callback",
            callback=getattr(callback, "__qualname__", repr(callback)),
            index=index,
        )
        return DestructionToken(self, self._generation, index)

    def run_all(self) -> int:
        """
        Invoke every pending entry exactly once, first to last.

        The cursor moves past an entry before the entry runs, and the loop
        bound is re-read each step: a callback may cancel later entries
        (they are skipped) or register new ones (they run in this pass).

        A raising callback is logged with its traceback and the pass
        continues with the next entry.

        Returns:
            Number of callbacks invoked
        """
        self._pass_depth += 1
        invoked = 0
        index = 0
        try:
            while index < len(self._slots):
                slot = self._slots[index]
                index += 1

                if slot.state is not SlotState.PENDING:
                    continue

                callback = slot.callback
                slot.state = SlotState.EXECUTED
                slot.callback = None
                invoked += 1

                try:
                    callback()
                except Exception as e:
                    log.error(
                        f"Destruction callback failed: {e}",
                        callback=getattr(callback, "__qualname__", repr(callback)),
                        exc_info=True,
                    )
        finally:
            self._pass_depth -= 1
            if self._pass_depth == 0:
                self._compact()

        log.debug(f"Destruction pass complete ({invoked} callbacks)")
        return invoked

    @property
    def pending_count(self) -> int:
        return sum(1 for slot in self._slots if slot.state is SlotState.PENDING)

    def __len__(self) -> int:
        return self.pending_count

    # -----------------------------
    # Token support
    # -----------------------------

    def _slot_for(self, generation: int, index: int) -> Optional[_Slot]:
        if generation != self._generation or index >= len(self._slots):
            return None
        return self._slots[index]

    def _cancel(self, generation: int, index: int) -> bool:
        slot = self._slot_for(generation, index)
        if slot is None or slot.state is not SlotState.PENDING:
            return False
        slot.state = SlotState.CANCELLED
        slot.callback = None
        log.debug("Cancelled destruction callback", index=index)
        return True

    def _state_of(self, generation: int, index: int) -> Optional[SlotState]:
        slot = self._slot_for(generation, index)
        return slot.state if slot is not None else None

    def _compact(self) -> None:
        """Clear the arena once every slot is consumed (an aborted pass keeps it)."""
        if not self._slots or any(slot.state is SlotState.PENDING for slot in self._slots):
            return
        self._slots = []
        self._generation += 1

"""
State container - holds the live snapshot and dispatches changes.

The StateContainer diffs every incoming snapshot against the one it
holds, routes the resulting patches to the listeners whose patterns match
their paths, then keeps the new snapshot.
"""

from __future__ import annotations

import logging as _logging
import typing as _typing

import huginn.config.types as config_types
import huginn.listeners.events as events
import huginn.listeners.matching as matching
import huginn.tree.diff as diff
import huginn.tree.patches as patches
import huginn.tree.values as values

if _typing.TYPE_CHECKING:
    import huginn.config.settings as config_settings

_logger = _logging.getLogger(__name__)


class StateContainer:
    """
    Holds a state snapshot and notifies listeners of changes.

    Listeners subscribe with a pattern such as "players/:id/position/:axis".
    On set(), patches are dispatched last-produced first. Every listener
    whose pattern matches a patch is called, in registration order; a patch
    matched by none goes to the fallback listener, if one is installed.

    Dispatch is synchronous. Callbacks run inline and must not call set()
    on the same container; listener changes made from a callback take
    effect on the next dispatch pass.
    """

    def __init__(
        self,
        state: values.TreeMap | None = None,
        *,
        registry: matching.PlaceholderRegistry | None = None,
        options: config_types.ContainerConfig | None = None,
    ) -> None:
        """
        Initialize the container.

        Args:
            state: Initial snapshot (a map). Defaults to an empty map.
            registry: Placeholder table used to compile patterns. Pass the
                same registry to several containers to share placeholders.
                Defaults to a new registry with the built-ins.
            options: Container behavior. Defaults to ContainerConfig().

        Raises:
            InvalidTreeError: If state is not a map.
        """
        self._options = options or config_types.ContainerConfig()
        self._registry = registry or matching.PlaceholderRegistry()
        self._state = self._check_snapshot({} if state is None else state)
        self._listeners: list[events.Listener] = []
        self._fallback: events.FallbackListener | None = None

    @classmethod
    def from_settings(
        cls,
        state: values.TreeMap | None = None,
        settings: config_settings.Settings | None = None,
    ) -> StateContainer:
        """
        Create a container configured from Settings.

        Builds a registry with the built-in placeholders plus those from
        settings.matching.

        Args:
            state: Initial snapshot.
            settings: Loaded settings. Defaults to Settings().

        Returns:
            Configured StateContainer.
        """
        if settings is None:
            # Import here to avoid loading config files at import time
            import huginn.config.settings as config_settings

            settings = config_settings.Settings()

        registry = matching.PlaceholderRegistry.from_placeholders(
            settings.matching.placeholders,
            marker=settings.matching.marker,
        )
        return cls(state, registry=registry, options=settings.container)

    @property
    def state(self) -> values.TreeMap:
        """The current snapshot. Treat as read-only."""
        return self._state

    @property
    def registry(self) -> matching.PlaceholderRegistry:
        return self._registry

    @property
    def listeners(self) -> tuple[events.Listener, ...]:
        """Registered path listeners, in registration order."""
        return tuple(self._listeners)

    @property
    def fallback(self) -> events.FallbackListener | None:
        return self._fallback

    def _check_snapshot(self, state: values.TreeValue) -> values.TreeMap:
        snapshot = values.ensure_map(state)
        if self._options.validate_snapshots:
            values.validate_tree(snapshot)
        return snapshot

    def set(self, new_state: values.TreeMap) -> list[patches.Patch]:
        """
        Replace the snapshot, notifying listeners of every change.

        Args:
            new_state: The new snapshot (a map). It is kept as given, so
                callers must not mutate it afterwards.

        Returns:
            The patches between the previous and the new snapshot.

        Raises:
            InvalidTreeError: If new_state is not a map.
        """
        new_state = self._check_snapshot(new_state)
        patch_list = diff.get_patch_list(self._state, new_state)
        _logger.debug("Snapshot changed: %d patches", len(patch_list))

        self._check_patches(patch_list)
        self._state = new_state

        return patch_list

    def register_placeholder(self, token: str, matcher: str | matching.SegmentMatcher) -> None:
        """
        Register a placeholder on this container's registry.

        Affects patterns passed to listen() afterwards, and every other
        container sharing the registry.
        """
        self._registry.register(token, matcher)

    def listen(
        self,
        pattern: str,
        callback: events.ChangeCallback,
        immediate: bool = False,
    ) -> events.Listener:
        """
        Subscribe to changes whose path matches pattern.

        Args:
            pattern: Separator-delimited segments, e.g. "players/:id".
            callback: Called with a DataChange per matching patch.
            immediate: Also call back now for every value already in the
                current snapshot that matches, as "add" changes. Other
                listeners are not notified.

        Returns:
            The listener, usable as a handle for remove_listener().
        """
        raw_segments = matching.split_pattern(pattern, self._options.separator)
        compiled = self._registry.compile(raw_segments, separator=self._options.separator)
        listener = events.Listener(pattern=compiled, callback=callback)
        self._listeners.append(listener)

        if immediate:
            initial = diff.get_patch_list({}, self._state)
            _logger.debug("Replaying %d initial patches to %r", len(initial), pattern)
            self._check_patches(initial, [listener], use_fallback=False)

        return listener

    def listen_fallback(self, callback: events.PatchCallback) -> events.FallbackListener:
        """
        Install the catch-all listener, replacing any previous one.

        The callback receives the raw Patch of every change no path
        listener matched.
        """
        self._fallback = events.FallbackListener(callback=callback)
        return self._fallback

    def remove_listener(self, listener: events.Listener | events.FallbackListener) -> None:
        """Remove a listener by identity. Unknown handles are ignored."""
        if listener is self._fallback:
            self._fallback = None
            return
        self._listeners = [existing for existing in self._listeners if existing is not listener]

    def remove_all_listeners(self) -> None:
        """Remove every path listener and the fallback listener."""
        self._listeners = []
        self._fallback = None

    def _check_patches(
        self,
        patch_list: _typing.Sequence[patches.Patch],
        listeners: _typing.Sequence[events.Listener] | None = None,
        *,
        use_fallback: bool = True,
    ) -> None:
        """
        Dispatch patches to listeners.

        Patches are walked from last to first, so trailing sequence
        removals are reported before the replaces that shift earlier
        items into place.
        """
        targets = tuple(self._listeners if listeners is None else listeners)
        fallback = self._fallback if use_fallback else None

        for patch in reversed(patch_list):
            matched = False

            for listener in targets:
                change = listener.match(patch)
                if change is None:
                    continue
                matched = True
                self._invoke(listener.callback, change)

            if not matched and fallback is not None:
                self._invoke(fallback.callback, patch)

    def _invoke(
        self,
        callback: _typing.Callable[[_typing.Any], object],
        payload: events.DataChange | patches.Patch,
    ) -> None:
        """Call a listener callback, applying the listener error policy."""
        if self._options.on_listener_error == "raise":
            callback(payload)
            return

        try:
            callback(payload)
        except Exception as e:
            _logger.warning(
                "Listener %r failed on %s: %s",
                callback,
                payload.operation.value,
                e,
                exc_info=True,
            )

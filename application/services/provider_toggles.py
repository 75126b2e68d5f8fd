import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from infrastructure.monitoring.logger import get_production_logger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToggleResult:
    provider_name: str
    enabled: bool
    success: bool
    error_message: str | None = None


class ProviderToggles:
    """
    Live enable/disable overrides layered over the configured provider flags.

    Names are matched case-insensitively; results always carry the
    registered spelling.
    """

    def __init__(self, configured: Mapping[str, bool]):
        self._configured = dict(configured)
        self._names = {name.casefold(): name for name in self._configured}
        self._overrides: dict[str, bool] = {}
        self._lock = threading.Lock()
        self.production_logger = get_production_logger()

    @property
    def provider_names(self) -> list[str]:
        return list(self._configured)

    def _resolve(self, name: str) -> str | None:
        return self._names.get(name.strip().casefold())

    def is_enabled(self, name: str) -> bool:
        registered = self._resolve(name)
        if registered is None:
            return False
        with self._lock:
            return self._overrides.get(registered, self._configured[registered])

    def toggle(self, name: str, enabled: bool) -> ToggleResult:
        registered = self._resolve(name)
        if registered is None:
            valid = ', '.join(self._configured)
            result = ToggleResult(
                provider_name=name,
                enabled=False,
                success=False,
                error_message=f"Provider '{name}' not found. Valid providers: {valid}",
            )
            self.production_logger.log_admin_action(
                'toggle_provider', {'provider': name, 'enabled': enabled}, success=False
            )
            return result

        with self._lock:
            self._overrides[registered] = enabled

        logger.info(f"Provider {registered} {'enabled' if enabled else 'disabled'}")
        self.production_logger.log_admin_action('toggle_provider', {'provider': registered, 'enabled': enabled})
        return ToggleResult(provider_name=registered, enabled=enabled, success=True)

    def bulk_toggle(self, items: Mapping[str, bool] | Iterable[tuple[str, bool]]) -> list[ToggleResult]:
        pairs = items.items() if isinstance(items, Mapping) else items
        return [self.toggle(name, enabled) for name, enabled in pairs]

    def status(self) -> dict[str, bool]:
        with self._lock:
            return {name: self._overrides.get(name, flag) for name, flag in self._configured.items()}

    def clear_overrides(self) -> None:
        with self._lock:
            self._overrides.clear()
        self.production_logger.log_admin_action('clear_provider_overrides', {})

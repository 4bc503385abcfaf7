"""
Persisted serving settings
"""

from dataclasses import dataclass
from typing import Optional

from PyQt5.QtCore import QSettings

from workers.serving_supervisor import ServingConfig
from workers.ticker import DEFAULT_TICK_INTERVAL_MS

ORGANIZATION = 'SeeMySpeech'
APPLICATION = 'ServingManager'


@dataclass
class ServingSettings:
    """User settings for the serving manager"""

    local_model: str = 'base'
    auto_load: bool = False
    tick_interval_ms: int = DEFAULT_TICK_INTERVAL_MS
    batch_size: int = 4
    batch_timeout_ms: int = 100

    @classmethod
    def load(cls, settings: Optional[QSettings] = None, default_model: Optional[str] = None):
        """
        Read settings, falling back to defaults for missing keys.

        Args:
            settings: QSettings to read; the application's store if None.
            default_model: Model to use when none has been saved yet.
        """
        if settings is None:
            settings = QSettings(ORGANIZATION, APPLICATION)

        defaults = cls()
        return cls(
            local_model=settings.value('local_model', default_model or defaults.local_model),
            auto_load=settings.value('auto_load', defaults.auto_load, type=bool),
            tick_interval_ms=settings.value('tick_interval_ms', defaults.tick_interval_ms, type=int),
            batch_size=settings.value('batch_size', defaults.batch_size, type=int),
            batch_timeout_ms=settings.value('batch_timeout_ms', defaults.batch_timeout_ms, type=int),
        )

    def save(self, settings: Optional[QSettings] = None):
        """Write settings"""
        if settings is None:
            settings = QSettings(ORGANIZATION, APPLICATION)

        settings.setValue('local_model', self.local_model)
        settings.setValue('auto_load', self.auto_load)
        settings.setValue('tick_interval_ms', self.tick_interval_ms)
        settings.setValue('batch_size', self.batch_size)
        settings.setValue('batch_timeout_ms', self.batch_timeout_ms)
        settings.sync()

    def serving_config(self) -> ServingConfig:
        return ServingConfig(batch_size=self.batch_size, batch_timeout_ms=self.batch_timeout_ms)

"""
Configuration loader for parsing YAML generation requests.
"""

import logging
import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Set
from datetime import date

from .calendar_model import contains, month_bounds, to_internal_month
from .capacity import weekly_target
from .errors import InvalidArgument
from .models import Employee, EngineSettings, Store, WEEKDAY_NAMES

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Custom exception for configuration errors."""

    pass


class InvalidDateFormatError(ConfigurationError):
    """Raised when a date is not in ISO 8601 format (YYYY-MM-DD)."""

    pass


@dataclass
class GenerationConfig:
    """Everything needed to generate one month."""

    month: int  # 0-based
    year: int
    stores: List[Store]
    employees: List[Employee]
    days_off: Dict[str, Set[date]] = field(default_factory=dict)
    settings: EngineSettings = field(default_factory=EngineSettings)

    @property
    def external_month(self) -> int:
        return self.month + 1

    @property
    def active_stores(self) -> List[Store]:
        return [s for s in self.stores if s.active]

    @property
    def active_employees(self) -> List[Employee]:
        return [e for e in self.employees if e.active]

    def get_store(self, store_id: str) -> Store:
        for store in self.stores:
            if store.id == store_id:
                return store
        raise ValueError(f"Store '{store_id}' not found")

    def get_employee(self, employee_id: str) -> Employee:
        for employee in self.employees:
            if employee.id == employee_id:
                return employee
        raise ValueError(f"Employee '{employee_id}' not found")


class ConfigLoader:
    """Loads and validates a generation request from a YAML file."""

    def __init__(self, config_path: str | Path):
        """
        Initialize the ConfigLoader with a configuration file path.

        Args:
            config_path: Path to the YAML configuration file

        Raises:
            FileNotFoundError: If config file doesn't exist
        """
        self.config_path = Path(config_path)

        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        self._raw_config: Dict[str, Any] | None = None
        self._config: GenerationConfig | None = None

    def load(self) -> GenerationConfig:
        """
        Load and parse the configuration file.

        Returns:
            GenerationConfig with all parsed data

        Raises:
            InvalidDateFormatError: If dates are not in ISO 8601 format
            ConfigurationError: If configuration is invalid
        """
        with open(self.config_path, "r") as f:
            self._raw_config = yaml.safe_load(f) or {}

        if not isinstance(self._raw_config, dict):
            raise ConfigurationError("Configuration root must be a mapping")

        self._config = self._parse_config()
        self._validate()

        return self._config

    @property
    def config(self) -> GenerationConfig:
        """
        Get the loaded configuration.

        Raises:
            RuntimeError: If load() hasn't been called yet
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    @property
    def raw_config(self) -> Dict[str, Any]:
        if self._raw_config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._raw_config

    def _parse_config(self) -> GenerationConfig:
        """Parse raw YAML data into a GenerationConfig object."""
        raw = self._raw_config

        period = raw.get("period", {}) or {}
        try:
            month = to_internal_month(period.get("month"))
        except InvalidArgument as e:
            raise ConfigurationError(f"period.month: {e.message}") from None
        year = period.get("year")
        try:
            month_bounds(month, year)
        except InvalidArgument as e:
            raise ConfigurationError(f"period.year: {e.message}") from None

        settings = self._parse_settings(raw.get("settings", {}) or {})
        stores = self._parse_stores(raw.get("stores", []) or [])
        employees, days_off = self._parse_employees(raw.get("employees", []) or [])

        return GenerationConfig(
            month=month,
            year=year,
            stores=stores,
            employees=employees,
            days_off=days_off,
            settings=settings,
        )

    def _parse_settings(self, settings_raw: Dict[str, Any]) -> EngineSettings:
        try:
            return EngineSettings(
                max_daily_hours=settings_raw.get("max_daily_hours", 12.0),
                max_retries=settings_raw.get("max_retries", 3),
                log_level=str(settings_raw.get("log_level", "INFO")).upper(),
            )
        except (InvalidArgument, TypeError) as e:
            raise ConfigurationError(f"Invalid settings: {e}") from None

    def _parse_working_hours(self, hours_raw: Dict[str, Any], store_name: str) -> Dict[str, float]:
        """Map day names to hours; days left out default to 0."""
        if not isinstance(hours_raw, dict):
            raise ConfigurationError(f"working_hours of store '{store_name}' must be a mapping")

        working_hours = {day: 0.0 for day in WEEKDAY_NAMES}
        for day_name, hours in hours_raw.items():
            key = str(day_name).lower()
            if key not in WEEKDAY_NAMES:
                raise ConfigurationError(
                    f"Invalid day name: '{day_name}'. "
                    f"Valid names: {', '.join(WEEKDAY_NAMES)}"
                )
            working_hours[key] = hours
        return working_hours

    def _parse_stores(self, stores_raw: List[Dict[str, Any]]) -> List[Store]:
        stores = []

        for store_data in stores_raw:
            name = store_data.get("name")
            store_id = store_data.get("id", name)
            if store_id is None:
                raise ConfigurationError("Every store needs an id or a name")
            try:
                stores.append(
                    Store(
                        id=str(store_id),
                        name=name,
                        working_hours=self._parse_working_hours(
                            store_data.get("working_hours", {}), name
                        ),
                        code=store_data.get("code"),
                        active=bool(store_data.get("active", True)),
                    )
                )
            except InvalidArgument as e:
                raise ConfigurationError(f"Store '{store_id}': {e.message}") from None

        return stores

    def _parse_employees(self, employees_raw: List[Dict[str, Any]]):
        """Parse employees and their days off."""
        employees = []
        days_off: Dict[str, Set[date]] = {}

        for emp_data in employees_raw:
            name = emp_data.get("name")
            employee_id = str(emp_data.get("id", name))
            chat_id = emp_data.get("chat_id")

            employees.append(
                Employee(
                    id=employee_id,
                    name=name,
                    chat_id=str(chat_id) if chat_id is not None else None,
                    active=bool(emp_data.get("active", True)),
                    is_admin=bool(emp_data.get("admin", False)),
                )
            )
            days_off[employee_id] = self._parse_days_off(
                emp_data.get("days_off", []) or [], name
            )

        return employees, days_off

    def _parse_days_off(self, days_raw: List[Any], employee_name: str) -> Set[date]:
        parsed = set()
        for day in days_raw:
            if not isinstance(day, date):
                raise InvalidDateFormatError(
                    f"Day off for {employee_name} must be in ISO 8601 format "
                    f"(YYYY-MM-DD), got: {day}. Example: 2026-01-15"
                )
            parsed.add(day)
        return parsed

    def _validate(self) -> None:
        """
        Validate that the configuration is internally consistent.

        Raises:
            ConfigurationError: If configuration has issues
        """
        config = self._config

        for kind, items in (("store", config.stores), ("employee", config.employees)):
            seen = set()
            for item in items:
                if not item.name:
                    raise ConfigurationError(f"Every {kind} needs a name")
                if item.id in seen:
                    raise ConfigurationError(f"Duplicate {kind} id '{item.id}'")
                seen.add(item.id)

        if not config.active_stores:
            raise ConfigurationError("At least one active store is required")
        if not config.active_employees:
            raise ConfigurationError("At least one active employee is required")

        self._check_days_off()

    def _check_days_off(self) -> None:
        """Warn about days off that fall outside the planning month."""
        config = self._config

        for employee in config.employees:
            for day in sorted(config.days_off.get(employee.id, ())):
                if not contains(config.month, config.year, day):
                    logger.warning(
                        "%s's day off %s is outside the planning period %02d/%d",
                        employee.name,
                        day,
                        config.external_month,
                        config.year,
                    )

    def get_summary(self) -> str:
        """
        Get a summary of the loaded configuration.

        Raises:
            RuntimeError: If load() hasn't been called yet
        """
        config = self.config
        first, last = month_bounds(config.month, config.year)

        lines = [
            f"Configuration from: {self.config_path}",
            f"Planning Period: {first} to {last}",
            f"Stores: {len(config.active_stores)} active of {len(config.stores)}",
        ]

        for store in config.stores:
            status = "" if store.active else " (inactive)"
            weekly = weekly_target(store)
            lines.append(f"  - {store.name}{status}: {weekly:g}h per week")

        lines.append(
            f"Employees: {len(config.active_employees)} active of {len(config.employees)}"
        )
        for employee in config.employees:
            off = len(config.days_off.get(employee.id, ()))
            status = "" if employee.active else " (inactive)"
            lines.append(f"  - {employee.name}{status}: {off} days off")

        return "\n".join(lines)

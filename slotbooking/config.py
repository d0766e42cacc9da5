"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.exceptions import ConfigError
from .domain.models import CatalogService, EmployeeId, duration_to_minutes


class ApiConfig(BaseModel):
    """Booking backend connection settings."""
    base_url: str = "http://localhost:8000"
    timeout_seconds: float = 30

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        """Ensure the request timeout is positive."""
        if value <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        return value


class ServiceEntry(BaseModel):
    """A service offered by the business."""
    id: Union[int, str]
    name: str
    duration: int = 30
    duration_unit: Literal["mins", "hours"] = "mins"
    price: float = 0.0
    deposit: float = 0.0

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure service duration is positive."""
        if value <= 0:
            raise ValueError("duration must be greater than zero")
        return value

    @property
    def duration_minutes(self) -> int:
        return duration_to_minutes(self.duration, self.duration_unit)

    def to_catalog_service(self) -> CatalogService:
        return CatalogService(
            service_id=self.id,
            name=self.name,
            duration_minutes=self.duration_minutes,
            price=self.price,
            deposit=self.deposit,
        )


class EmployeeEntry(BaseModel):
    """A staff member and the services they can deliver."""
    id: Union[int, str]
    name: str
    service_ids: List[Union[int, str]] = Field(default_factory=list)

    def offers(self, service_id) -> bool:
        return any(str(offered) == str(service_id) for offered in self.service_ids)


class AppConfig(BaseModel):
    """Application configuration."""
    account_id: Union[int, str]
    timezone: str = "Europe/London"
    api: ApiConfig = Field(default_factory=ApiConfig)
    services: List[ServiceEntry] = Field(default_factory=list)
    employees: List[EmployeeEntry] = Field(default_factory=list)
    cart_file: Path = Field(default_factory=lambda: Path.home() / ".slotbooking_cart.json")
    session_file: Path = Field(default_factory=lambda: Path.home() / ".slotbooking_session.json")

    @field_validator("services")
    @classmethod
    def validate_services(cls, value: List[ServiceEntry]) -> List[ServiceEntry]:
        """Ensure service ids are unique."""
        seen: set[str] = set()
        for service in value:
            key = str(service.id)
            if key in seen:
                raise ValueError(f"Duplicate service id detected: {service.id}")
            seen.add(key)
        return value

    @field_validator("employees")
    @classmethod
    def validate_employees(cls, value: List[EmployeeEntry]) -> List[EmployeeEntry]:
        """Ensure employee ids are unique."""
        seen: set[str] = set()
        for employee in value:
            key = str(employee.id)
            if key in seen:
                raise ValueError(f"Duplicate employee id detected: {employee.id}")
            seen.add(key)
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigError: If the file is not valid YAML or not a mapping
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def to_catalog(self) -> List[CatalogService]:
        return [service.to_catalog_service() for service in self.services]

    def find_service(self, service_id) -> Optional[ServiceEntry]:
        for service in self.services:
            if str(service.id) == str(service_id):
                return service
        return None

    def find_employee(self, identifier: str) -> Optional[EmployeeEntry]:
        """Find an employee by id or (case-insensitive) name."""
        for employee in self.employees:
            if str(employee.id) == str(identifier) or employee.name.lower() == str(identifier).lower():
                return employee
        return None

    def eligible_employee_ids(self, service_id) -> List[EmployeeId]:
        """Employees who deliver ``service_id``, in configuration order."""
        return [employee.id for employee in self.employees if employee.offers(service_id)]


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path

"""Configuration management for deferunit."""

import json
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class ExecutionConfig(BaseModel):
    """Engine behaviour."""

    async_timeout_ms: int = Field(default=400, description="Default timeout for async handlers")
    completion_delay_ms: int = Field(
        default=10, description="Delay before the completion handler is invoked"
    )
    debug: bool = Field(default=False, description="Include tests marked debug_only")

    @field_validator("async_timeout_ms")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Async timeout must be at least 1 millisecond")
        return v

    @field_validator("completion_delay_ms")
    @classmethod
    def validate_delay(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Completion delay cannot be negative")
        return v

    @property
    def async_timeout(self) -> float:
        return self.async_timeout_ms / 1000

    @property
    def completion_delay(self) -> float:
        return self.completion_delay_ms / 1000


class ConsoleConfig(BaseModel):
    """Console output configuration."""

    show_ignored: bool = Field(default=True, description="List ignored tests")
    verbose: bool = Field(default=False, description="Print every passing test")


class ReportConfig(BaseModel):
    """HTML report configuration."""

    html: bool = Field(default=False, description="Write an HTML report")
    output_dir: str = Field(default="./reports", description="Directory for report output")
    filename: str = Field(default="test_report.html", description="Report filename")
    title: str = Field(default="Test Results", description="Report title")


class DeferunitConfig(BaseModel):
    """Main configuration for deferunit."""

    suites: list[str] = Field(
        default_factory=list, description="Suites to run, as 'package.module:SuiteClass'"
    )
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    console: ConsoleConfig = Field(default_factory=ConsoleConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    @field_validator("suites")
    @classmethod
    def validate_suites(cls, v: list[str]) -> list[str]:
        for entry in v:
            module, _, attr = entry.partition(":")
            if not module.strip() or not attr.strip():
                raise ValueError(f"Suite must look like 'module:SuiteClass', got {entry!r}")
        return v

    @classmethod
    def from_file(cls, path: Path | str) -> "DeferunitConfig":
        """Load configuration from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            data = json.load(f)

        return cls.model_validate(data)

    @classmethod
    def find_and_load(cls, start_dir: Path | str | None = None) -> "DeferunitConfig":
        """Find and load configuration file, searching up the directory tree."""
        if start_dir is None:
            start_dir = Path.cwd()
        else:
            start_dir = Path(start_dir)

        config_names = ["deferunit.json", ".deferunit.json"]

        current = start_dir.resolve()
        while True:
            for name in config_names:
                config_path = current / name
                if config_path.exists():
                    return cls.from_file(config_path)
            if current == current.parent:
                break
            current = current.parent

        raise FileNotFoundError(
            "No configuration file found. Create deferunit.json or run 'deferunit init'"
        )

    def to_file(self, path: Path | str) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)

    def report_path(self, base_dir: Path | str | None = None) -> Path:
        """Get the absolute path of the HTML report."""
        base_dir = Path.cwd() if base_dir is None else Path(base_dir)
        return (base_dir / self.report.output_dir / self.report.filename).resolve()


def get_default_config() -> DeferunitConfig:
    """Return a default configuration."""
    return DeferunitConfig(
        suites=["tests.suite:AllTests"],
        execution=ExecutionConfig(),
        report=ReportConfig(html=True),
    )


def create_example_config(output_path: Path | str) -> Path:
    """Create an example configuration file."""
    output_path = Path(output_path)
    config = get_default_config()
    config.to_file(output_path)
    return output_path

from typing import Dict, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from accessh.constants import DEFAULT_SSH_HOST, DEFAULT_SSH_PORT


def _check_port(v: int) -> int:
    if not (1 <= v <= 65535):
        raise ValueError(f"Invalid port {v}: must be 1-65535")
    return v


class LocationConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    service: str
    description: str = ""
    repo: str = ""
    hostname: str
    port: int

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        return _check_port(v)


class SSHSettings(BaseModel):
    model_config = ConfigDict(extra="allow")
    enabled: bool = False
    hostname: str = DEFAULT_SSH_HOST
    port: Union[int, str] = DEFAULT_SSH_PORT
    host_key_path: Optional[str] = None

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: Union[int, str]) -> int:
        """Accept the port as a number or a numeric string (the original config stores a string)."""
        if isinstance(v, str):
            if not v.strip().isdigit():
                raise ValueError(f"Invalid port {v!r}: expected a number")
            v = int(v.strip())
        return _check_port(v)


class ProgramSettings(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    title: str = ""
    description: str = ""
    ssh: SSHSettings = Field(default_factory=SSHSettings, validation_alias=AliasChoices("ssh", "SSH"))


class AccesshConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    settings: ProgramSettings = Field(default_factory=ProgramSettings)
    locations: Dict[str, LocationConfig] = {}

"""Pydantic models for the bot configuration a manifest is generated from.

A ``bot.yaml`` only names what differs between bot instances; every
referenced resource name derives from the bot name unless set explicitly.
"""

import posixpath
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from roochdeploy.config.defaults import (
    CHARACTER_CONFIG_MAP_SUFFIX,
    CHARACTER_FILE_SUFFIX,
    CHARACTER_VOLUME_NAME,
    CHARACTERS_FLAG,
    CONFIG_MAP_SUFFIX,
    DATA_CLAIM_SUFFIX,
    DEFAULT_ARGS,
    DEFAULT_BOT_NAME,
    DEFAULT_CHARACTERS_DIR,
    DEFAULT_COMMAND,
    DEFAULT_DATA_MOUNT_PATH,
    DEFAULT_IMAGE_REPOSITORY,
    DEFAULT_IMAGE_TAG,
    DEFAULT_NAMESPACE,
    DEFAULT_PORT,
    DEFAULT_REPLICAS,
    SECRET_SUFFIX,
)
from roochdeploy.lib.errors import ValidationError
from roochdeploy.lib.validation import (
    parse_image_reference,
    validate_absolute_path,
    validate_config_map_key,
    validate_dns1123_label,
    validate_dns1123_subdomain,
    validate_labels,
)


class ImageRef(BaseModel):
    """Container image coordinates.

    Attributes:
        repository: Image repository (e.g., jolestar/eliza-tee)
        tag: Immutable build tag
    """

    model_config = ConfigDict(extra="forbid")

    repository: str = Field(
        default=DEFAULT_IMAGE_REPOSITORY, description="Image repository"
    )
    tag: str = Field(default=DEFAULT_IMAGE_TAG, description="Image tag")

    @model_validator(mode="after")
    def validate_reference(self) -> "ImageRef":
        """Validate that repository and tag form a parseable reference."""
        ref = parse_image_reference(str(self))
        if ref.repository != self.repository or ref.tag != self.tag:
            raise ValueError(f"Invalid image coordinates: {self}")
        return self

    def __str__(self) -> str:
        return f"{self.repository}:{self.tag}"


class BotConfig(BaseModel):
    """Configuration of one bot instance.

    Attributes:
        name: Deployment name, container name and default resource prefix
        namespace: Target namespace
        image: Image repository and tag
        replicas: Desired instance count
        port: Declared container port
        command: Entrypoint override
        args: Arguments before the character flag
        characters_dir: Mount path of the character ConfigMap volume
        character_file: Projected character file name
        data_mount_path: Mount path of the persistent data volume
        data_claim: PersistentVolumeClaim name
        config_map: ConfigMap imported into the environment
        secret: Secret imported into the environment
        character_config_map: ConfigMap holding the character definition
        labels: Pod labels, also used as the selector
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(default=DEFAULT_BOT_NAME)
    namespace: str = Field(default=DEFAULT_NAMESPACE)
    image: ImageRef = Field(default_factory=ImageRef)
    replicas: int = Field(default=DEFAULT_REPLICAS, ge=0)
    port: Annotated[int, Field(ge=1, le=65535)] = Field(default=DEFAULT_PORT)
    command: list[str] = Field(default_factory=lambda: list(DEFAULT_COMMAND))
    args: list[str] = Field(default_factory=lambda: list(DEFAULT_ARGS))
    characters_dir: str = Field(default=DEFAULT_CHARACTERS_DIR)
    character_file: str | None = Field(default=None)
    data_mount_path: str = Field(default=DEFAULT_DATA_MOUNT_PATH)
    data_claim: str | None = Field(default=None)
    config_map: str | None = Field(default=None)
    secret: str | None = Field(default=None)
    character_config_map: str | None = Field(default=None)
    labels: dict[str, str] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Bot names double as container names, so they must be DNS-1123 labels."""
        return validate_dns1123_label(v, what="bot name")

    @field_validator("namespace")
    @classmethod
    def validate_namespace(cls, v: str) -> str:
        """Validate namespace format."""
        return validate_dns1123_label(v, what="namespace")

    @field_validator("characters_dir", "data_mount_path")
    @classmethod
    def validate_mount_paths(cls, v: str) -> str:
        """Validate mount paths are absolute."""
        return validate_absolute_path(v).rstrip("/") or "/"

    @field_validator("character_file")
    @classmethod
    def validate_character_file(cls, v: str | None) -> str | None:
        """The character file is a ConfigMap key, so it must be a valid key."""
        if v is not None:
            validate_config_map_key(v)
        return v

    @field_validator("labels")
    @classmethod
    def validate_label_map(cls, v: dict[str, str]) -> dict[str, str]:
        """Validate label keys and values."""
        return validate_labels(v)

    @model_validator(mode="after")
    def fill_derived_names(self) -> "BotConfig":
        """Derive resource names from the bot name where not set."""
        if self.character_file is None:
            self.character_file = f"{self.name}{CHARACTER_FILE_SUFFIX}"
        if self.data_claim is None:
            self.data_claim = f"{self.name}{DATA_CLAIM_SUFFIX}"
        if self.config_map is None:
            self.config_map = f"{self.name}{CONFIG_MAP_SUFFIX}"
        if self.secret is None:
            self.secret = f"{self.name}{SECRET_SUFFIX}"
        if self.character_config_map is None:
            self.character_config_map = f"{self.name}{CHARACTER_CONFIG_MAP_SUFFIX}"
        if not self.labels:
            self.labels = {"app": self.name}

        # the claim name doubles as the data volume name
        validate_dns1123_label(self.data_claim, what="data_claim")
        for field in ("config_map", "secret", "character_config_map"):
            validate_dns1123_subdomain(getattr(self, field), what=field)
        if self.data_claim == CHARACTER_VOLUME_NAME:
            raise ValidationError(
                "data_claim",
                "data volume would share its name with the character volume",
                f"a name other than '{CHARACTER_VOLUME_NAME}'",
                repr(self.data_claim),
            )
        if self.characters_dir == self.data_mount_path:
            raise ValidationError(
                "characters_dir",
                "character and data volumes would be mounted at the same path",
                f"a path other than data_mount_path '{self.data_mount_path}'",
                repr(self.characters_dir),
            )
        if CHARACTERS_FLAG in self.args:
            raise ValueError(
                f"args must not contain {CHARACTERS_FLAG}; it is appended "
                "from characters_dir and character_file"
            )
        return self

    @property
    def character_path(self) -> str:
        """Return the in-container path of the character file."""
        assert self.character_file is not None
        return posixpath.join(self.characters_dir, self.character_file)

    @property
    def full_args(self) -> list[str]:
        """Return the container args including the character flag."""
        return [*self.args, CHARACTERS_FLAG, self.character_path]

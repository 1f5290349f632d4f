"""Tests for BotConfig and ImageRef."""

import pytest
from pydantic import ValidationError

from roochdeploy.lib.errors import ValidationError as RoochValidationError
from roochdeploy.models.bot import BotConfig, ImageRef


class TestImageRef:
    """Tests for ImageRef."""

    def test_default_image(self) -> None:
        """Test the default image is the pinned eliza-tee build."""
        assert str(ImageRef()) == "jolestar/eliza-tee:0.1.6-alpha.4-20241219.2"

    def test_registry_with_port(self) -> None:
        """Test a registry port is part of the repository."""
        image = ImageRef(repository="registry:5000/eliza-tee", tag="1.0")
        assert str(image) == "registry:5000/eliza-tee:1.0"

    def test_tag_with_colon_rejected(self) -> None:
        """Test a tag cannot hide a second separator."""
        with pytest.raises(ValidationError):
            ImageRef(repository="jolestar/eliza-tee", tag="1:2")

    def test_empty_tag_rejected(self) -> None:
        """Test the tag is required to be non-empty."""
        with pytest.raises(ValidationError):
            ImageRef(tag="")


class TestBotConfigDefaults:
    """Tests for BotConfig default values."""

    def test_defaults_describe_roochbot(self) -> None:
        """Test defaults match the mainnet roochbot instance."""
        bot = BotConfig()
        assert bot.name == "roochbot"
        assert bot.namespace == "mainnet"
        assert bot.replicas == 1
        assert bot.port == 3000
        assert bot.command == ["pnpm"]
        assert bot.args == ["start", "--non-interactive"]

    def test_derived_resource_names(self) -> None:
        """Test resource names derive from the bot name."""
        bot = BotConfig(name="mybot")
        assert bot.data_claim == "mybot-data"
        assert bot.config_map == "mybot-config"
        assert bot.secret == "mybot-secrets"
        assert bot.character_config_map == "mybot-character-config"
        assert bot.character_file == "mybot.character.json"
        assert bot.labels == {"app": "mybot"}

    def test_explicit_names_kept(self) -> None:
        """Test explicit resource names are not overwritten."""
        bot = BotConfig(name="mybot", secret="shared-secrets", labels={"tier": "bot"})
        assert bot.secret == "shared-secrets"
        assert bot.labels == {"tier": "bot"}

    def test_default_lists_are_independent(self) -> None:
        """Test instances do not share mutable defaults."""
        first = BotConfig()
        first.args.append("--debug")
        assert BotConfig().args == ["start", "--non-interactive"]


class TestBotConfigArgs:
    """Tests for the character flag handling."""

    def test_character_path(self) -> None:
        """Test the character path joins directory and file."""
        assert BotConfig().character_path == "/app/characters/roochbot.character.json"

    def test_trailing_slash_stripped(self) -> None:
        """Test the characters directory is normalized."""
        bot = BotConfig(characters_dir="/app/characters/")
        assert bot.characters_dir == "/app/characters"
        assert bot.character_path == "/app/characters/roochbot.character.json"

    def test_full_args_appends_character_flag(self) -> None:
        """Test the --characters flag comes last."""
        assert BotConfig().full_args == [
            "start",
            "--non-interactive",
            "--characters",
            "/app/characters/roochbot.character.json",
        ]

    def test_character_flag_in_args_rejected(self) -> None:
        """Test args cannot carry their own --characters flag."""
        with pytest.raises(ValidationError, match="--characters"):
            BotConfig(args=["start", "--characters", "/x.json"])


class TestBotConfigValidation:
    """Tests for BotConfig field validation."""

    @pytest.mark.parametrize("name", ["RoochBot", "rooch.bot", "", "a" * 64])
    def test_invalid_name_rejected(self, name: str) -> None:
        """Test bot names must be DNS-1123 labels."""
        with pytest.raises(ValidationError):
            BotConfig(name=name)

    def test_relative_mount_path_rejected(self) -> None:
        """Test mount paths must be absolute."""
        with pytest.raises(ValidationError, match="must be absolute"):
            BotConfig(data_mount_path="data")

    def test_negative_replicas_rejected(self) -> None:
        """Test replicas must be non-negative."""
        with pytest.raises(ValidationError):
            BotConfig(replicas=-1)

    def test_invalid_port_rejected(self) -> None:
        """Test port bounds."""
        with pytest.raises(ValidationError):
            BotConfig(port=0)

    def test_invalid_character_file_rejected(self) -> None:
        """Test the character file must be a valid ConfigMap key."""
        with pytest.raises(ValidationError):
            BotConfig(character_file="characters/roochbot.json")

    def test_invalid_secret_name_rejected(self) -> None:
        """Test explicit resource names are validated."""
        with pytest.raises(ValidationError):
            BotConfig(secret="Bad_Secret")

    def test_unknown_key_rejected(self) -> None:
        """Test typos in bot.yaml are reported."""
        with pytest.raises(ValidationError):
            BotConfig.model_validate({"nmae": "roochbot"})


class TestBotConfigVolumes:
    """Tests for names and paths shared by the generated volumes."""

    def test_dotted_claim_rejected(self) -> None:
        """Test the claim name must also be a valid volume name."""
        with pytest.raises(ValidationError, match="data_claim"):
            BotConfig(data_claim="roochbot.data")

    def test_long_derived_claim_rejected(self) -> None:
        """Test a bot name too long for the derived claim name."""
        with pytest.raises(ValidationError, match="63 characters"):
            BotConfig(name="a" * 60)

    def test_claim_named_like_character_volume_rejected(self) -> None:
        """Test two volumes can never share a name."""
        with pytest.raises(ValidationError) as exc_info:
            BotConfig(data_claim="character-config")
        text = str(exc_info.value)
        assert "share its name with the character volume" in text
        assert "Got: 'character-config'" in text

    def test_shared_mount_path_rejected(self) -> None:
        """Test character and data volumes need distinct mount paths."""
        with pytest.raises(ValidationError, match="same path"):
            BotConfig(characters_dir="/app/data", data_mount_path="/app/data/")

    def test_conflict_error_is_roochdeploy_validation_error(self) -> None:
        """Test the conflict is raised as the package ValidationError."""
        with pytest.raises(ValidationError) as exc_info:
            BotConfig(data_claim="character-config")
        cause = exc_info.value.errors()[0]["ctx"]["error"]
        assert isinstance(cause, RoochValidationError)
        assert cause.field == "data_claim"

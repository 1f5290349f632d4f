"""Default configuration for the roochbot deployment."""

# Bot defaults; resource names derive from the bot name unless overridden
DEFAULT_BOT_NAME = "roochbot"
DEFAULT_NAMESPACE = "mainnet"
DEFAULT_IMAGE_REPOSITORY = "jolestar/eliza-tee"
DEFAULT_IMAGE_TAG = "0.1.6-alpha.4-20241219.2"
DEFAULT_REPLICAS = 1
DEFAULT_PORT = 3000
DEFAULT_COMMAND: list[str] = ["pnpm"]
DEFAULT_ARGS: list[str] = ["start", "--non-interactive"]
DEFAULT_CHARACTERS_DIR = "/app/characters"
DEFAULT_DATA_MOUNT_PATH = "/app/agent/data"

CHARACTERS_FLAG = "--characters"
CHARACTER_FILE_SUFFIX = ".character.json"
CHARACTER_VOLUME_NAME = "character-config"

# Name suffixes for resources the Deployment references
DATA_CLAIM_SUFFIX = "-data"
CONFIG_MAP_SUFFIX = "-config"
SECRET_SUFFIX = "-secrets"
CHARACTER_CONFIG_MAP_SUFFIX = "-character-config"

# Cluster access
KUBECONFIG_ENV_VAR = "ROOCHDEPLOY_KUBECONFIG"
CONTEXT_ENV_VAR = "ROOCHDEPLOY_CONTEXT"

MANIFEST_DIR = "kube"

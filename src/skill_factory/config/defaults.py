"""Built-in default configuration for skill factory."""

# Default configuration that serves as the base for any project config
DEFAULT_CONFIG = {
    "version": "1.0",
    "settings": {
        "skills_dir": "skills",
        "registry_file": "registry/discovery.json",
        "categories": ["web", "code", "data", "automation"],
        "maintainer": "AIwork4me",
        "protocol_policy": "strict",
        "install_command": ["bun", "add"],
    },
}

CONFIG_FILENAME = "skill-factory.yaml"

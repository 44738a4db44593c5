import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # Application
    app_name: str = os.getenv("APP_NAME", "Library Lending")
    log_level: str = os.getenv("LENDING_LOG_LEVEL", "WARNING").upper()

    # Lending rules
    default_max_borrowed: int = int(os.getenv("LENDING_DEFAULT_MAX_BORROWED", "5"))
    default_quantity: int = int(os.getenv("LENDING_DEFAULT_QUANTITY", "1"))
    enforce_publish_state: bool = _env_flag("LENDING_ENFORCE_PUBLISH_STATE", "True")

    # CLI output: plain | json | rich
    output_mode: str = os.getenv("LIB_CLI_OUTPUT", "plain")


settings = Settings()

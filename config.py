import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Settings:
    # Storage settings
    data_file: str = os.getenv("LIBRARY_DATA_FILE", "library.txt")
    max_books: int = int(os.getenv("LIBRARY_MAX_BOOKS", "100"))

    # Field length caps of the legacy line format
    title_max_length: int = int(os.getenv("LIBRARY_TITLE_MAX_LENGTH", "59"))
    author_max_length: int = int(os.getenv("LIBRARY_AUTHOR_MAX_LENGTH", "39"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "WARNING").upper()

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Digital Library")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level


settings = Settings()

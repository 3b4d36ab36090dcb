# adamas_calc/config.py

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Keys the history / profile lists are stored under
    HISTORY_KEY: str = "adamas-calculator-history"
    PROFILES_KEY: str = "adamas-semester-profiles"

    # Profiles that can be compared side by side
    COMPARE_LIMIT: int = 4

    # Results at or above this get a celebration in the UI
    CELEBRATION_SGPA: float = 8.0

    DEFAULT_SUBJECT_CREDITS: int = 3
    DEFAULT_SEMESTER_CREDITS: int = 20

    LOG_LEVEL: str = "INFO"

    class Config:
        env_prefix = "ADAMAS_CALC_"
        case_sensitive = False


CONFIG = Settings()

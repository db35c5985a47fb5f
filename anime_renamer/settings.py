from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    tmdb_api_key: str = ""
    tmdb_base_url: str = "https://api.themoviedb.org/3"
    anilist_url: str = "https://graphql.anilist.co"
    language: str = "zh-CN"
    http_timeout_sec: int = 20

    # Comma separated, without dots
    video_extensions: str = "mkv,mp4,avi,flv,rmvb,mov"

    log_level: str = "INFO"
    log_file: str = ""  # empty disables the file sink
    debug: bool = False

    def video_extension_set(self) -> set[str]:
        return {f".{x.strip().lower().lstrip('.')}" for x in self.video_extensions.split(",") if x.strip()}


settings = Settings()

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from tcapi_sdk.errors import KeyMaterialError
from tcapi_sdk.types import Access


class Settings(BaseSettings):
    secret_id: str | None = None
    secret_key: SecretStr | None = None

    timeout: float = 10.0
    scheme: str = "https"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="TENCENTCLOUD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def access(self) -> Access:
        if not self.secret_id or self.secret_key is None:
            raise KeyMaterialError(
                "TENCENTCLOUD_SECRET_ID and TENCENTCLOUD_SECRET_KEY must both be set"
            )
        return Access(secret_id=self.secret_id, secret_key=self.secret_key.get_secret_value())


settings = Settings()

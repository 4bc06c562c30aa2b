"""
설정 로더

settings.yaml 로드 및 실행 환경 설정 생성
"""

import os
from dataclasses import dataclass
from datetime import timezone, timedelta
from pathlib import Path

import yaml

from core.constants import Defaults, Paths
from core.types import RunMode

# 설정 파일 경로를 덮어쓰는 환경 변수
SETTINGS_ENV_VAR = "FAMLEDGER_SETTINGS"


@dataclass(frozen=True)
class WebConfig:
    """HTTP 서버 설정"""

    secret_key: str
    host: str = Defaults.WEB_HOST
    port: int = Defaults.WEB_PORT


@dataclass(frozen=True)
class AppConfig:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    mode: RunMode
    web: WebConfig
    timezone_offset_hours: int = Defaults.TIMEZONE_OFFSET_HOURS
    db_path: Path | None = None


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def resolve_settings_path(path: Path | None = None) -> Path:
    """설정 파일 경로 결정 (인자 > 환경 변수 > 기본 경로)"""
    if path is not None:
        return path
    env_path = os.environ.get(SETTINGS_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Paths.SETTINGS_FILE


def load_config(path: Path | None = None) -> AppConfig:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 환경 변수 또는 기본 경로 사용)

    Returns:
        AppConfig 인스턴스

    Raises:
        SettingsLoadError: 파일이 없거나 형식이 잘못된 경우
        ValueError: 유효하지 않은 mode인 경우
    """
    path = resolve_settings_path(path)

    if not path.exists():
        raise SettingsLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        raise SettingsLoadError("settings.yaml이 비어 있습니다")

    mode_str = data.get("mode")
    if mode_str is None:
        raise SettingsLoadError("settings.yaml에 'mode' 필드가 없습니다")

    try:
        mode = RunMode(mode_str)
    except ValueError as e:
        valid_modes = [m.value for m in RunMode]
        raise ValueError(
            f"유효하지 않은 mode입니다: '{mode_str}'. "
            f"유효한 값: {valid_modes}"
        ) from e

    web_data = data.get("web") or {}
    secret_key = web_data.get("secret_key", "")
    if not secret_key:
        raise SettingsLoadError(
            "settings.yaml의 web 섹션에 'secret_key'가 없습니다"
        )

    web = WebConfig(
        secret_key=secret_key,
        host=web_data.get("host", Defaults.WEB_HOST),
        port=int(web_data.get("port", Defaults.WEB_PORT)),
    )

    offset = int(data.get("timezone_offset_hours", Defaults.TIMEZONE_OFFSET_HOURS))
    if not -12 <= offset <= 14:
        raise SettingsLoadError(f"timezone_offset_hours 범위 오류: {offset}")

    db_path = data.get("db_path")

    return AppConfig(
        mode=mode,
        web=web,
        timezone_offset_hours=offset,
        db_path=Path(db_path) if db_path else None,
    )


def get_db_path(config: AppConfig) -> Path:
    """모드에 따른 DB 경로 반환 (db_path 명시 시 우선)

    Args:
        config: AppConfig 인스턴스

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if config.db_path is not None:
        return config.db_path
    if config.mode == RunMode.PRODUCTION:
        return Paths.PROD_DB
    return Paths.SANDBOX_DB


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _config: AppConfig | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._config is None:
            type(self)._config = load_config(settings_path)

    @property
    def mode(self) -> RunMode:
        """현재 실행 모드"""
        assert self._config is not None
        return self._config.mode

    @property
    def web(self) -> WebConfig:
        """HTTP 서버 설정"""
        assert self._config is not None
        return self._config.web

    @property
    def web_secret_key(self) -> str:
        """Web JWT Secret Key"""
        return self.web.secret_key

    @property
    def tz(self) -> timezone:
        """달력 판단에 쓰는 로컬 타임존"""
        assert self._config is not None
        return timezone(timedelta(hours=self._config.timezone_offset_hours))

    @property
    def db_path(self) -> Path:
        """현재 모드의 DB 경로"""
        assert self._config is not None
        return get_db_path(self._config)

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)

"""
core/config/loader.py 테스트

settings.yaml 로드, 검증, 모드별 DB 경로 테스트
"""

from datetime import timedelta
from pathlib import Path

import pytest

from core.config.loader import (
    SETTINGS_ENV_VAR,
    AppConfig,
    SettingsLoadError,
    WebConfig,
    get_db_path,
    get_settings,
    load_config,
    resolve_settings_path,
)
from core.constants import Defaults, Paths
from core.types import RunMode


class TestAppConfig:
    """AppConfig 데이터클래스 테스트"""

    def test_defaults(self) -> None:
        """기본값"""
        config = AppConfig(mode=RunMode.SANDBOX, web=WebConfig(secret_key="jwt"))

        assert config.timezone_offset_hours == Defaults.TIMEZONE_OFFSET_HOURS
        assert config.db_path is None
        assert config.web.host == Defaults.WEB_HOST
        assert config.web.port == Defaults.WEB_PORT

    def test_frozen(self) -> None:
        """불변성 확인"""
        config = AppConfig(mode=RunMode.SANDBOX, web=WebConfig(secret_key="jwt"))

        with pytest.raises(AttributeError):
            config.mode = RunMode.PRODUCTION  # type: ignore


class TestLoadConfig:
    """load_config 함수 테스트"""

    def test_load_sandbox(self, temp_settings_file: Path) -> None:
        """Sandbox 모드 로드"""
        config = load_config(temp_settings_file)

        assert config.mode == RunMode.SANDBOX
        assert config.web.secret_key == "test_jwt_secret_key_xyz"
        assert config.web.host == "0.0.0.0"
        assert config.web.port == 9000
        assert config.timezone_offset_hours == -3

    def test_load_production(self, temp_settings_file_production: Path) -> None:
        """Production 모드 + db_path"""
        config = load_config(temp_settings_file_production)

        assert config.mode == RunMode.PRODUCTION
        assert config.db_path is not None
        assert config.db_path.name == "prod.db"

    def test_file_not_found(self, temp_dir: Path) -> None:
        """파일 없음"""
        with pytest.raises(SettingsLoadError, match="찾을 수 없습니다"):
            load_config(temp_dir / "nonexistent.yaml")

    def test_invalid_mode(self, temp_settings_file_invalid_mode: Path) -> None:
        """유효하지 않은 mode"""
        with pytest.raises(ValueError, match="유효하지 않은 mode"):
            load_config(temp_settings_file_invalid_mode)

    def test_empty_file(self, temp_dir: Path) -> None:
        """빈 파일"""
        empty_file = temp_dir / "empty.yaml"
        empty_file.write_text("", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="비어 있습니다"):
            load_config(empty_file)

    def test_missing_mode(self, temp_dir: Path) -> None:
        """mode 필드 누락"""
        file = temp_dir / "no_mode.yaml"
        file.write_text('web:\n  secret_key: "jwt"\n', encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="'mode' 필드가 없습니다"):
            load_config(file)

    def test_missing_web_secret(self, temp_dir: Path) -> None:
        """web secret_key 누락"""
        file = temp_dir / "no_web_secret.yaml"
        file.write_text("mode: sandbox\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="'secret_key'가 없습니다"):
            load_config(file)

    def test_timezone_out_of_range(self, temp_dir: Path) -> None:
        """타임존 오프셋 범위 오류"""
        file = temp_dir / "bad_tz.yaml"
        file.write_text(
            'mode: sandbox\ntimezone_offset_hours: 20\nweb:\n  secret_key: "jwt"\n',
            encoding="utf-8",
        )

        with pytest.raises(SettingsLoadError, match="timezone_offset_hours"):
            load_config(file)

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        """잘못된 YAML 형식"""
        file = temp_dir / "invalid.yaml"
        file.write_text("invalid: yaml: content:", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="파싱 실패"):
            load_config(file)


class TestResolveSettingsPath:
    """설정 파일 경로 우선순위"""

    def test_argument_wins(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(SETTINGS_ENV_VAR, str(temp_dir / "env.yaml"))
        assert resolve_settings_path(temp_dir / "arg.yaml") == temp_dir / "arg.yaml"

    def test_env_var(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(SETTINGS_ENV_VAR, str(temp_dir / "env.yaml"))
        assert resolve_settings_path() == temp_dir / "env.yaml"

    def test_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(SETTINGS_ENV_VAR, raising=False)
        assert resolve_settings_path() == Paths.SETTINGS_FILE


class TestGetDbPath:
    """get_db_path 함수 테스트"""

    def test_production(self) -> None:
        config = AppConfig(mode=RunMode.PRODUCTION, web=WebConfig(secret_key="jwt"))
        assert get_db_path(config) == Paths.PROD_DB

    def test_sandbox(self) -> None:
        config = AppConfig(mode=RunMode.SANDBOX, web=WebConfig(secret_key="jwt"))
        assert get_db_path(config) == Paths.SANDBOX_DB

    def test_explicit_path(self, temp_dir: Path) -> None:
        config = AppConfig(
            mode=RunMode.PRODUCTION,
            web=WebConfig(secret_key="jwt"),
            db_path=temp_dir / "custom.db",
        )
        assert get_db_path(config) == temp_dir / "custom.db"


class TestSettings:
    """Settings 싱글턴 테스트"""

    def test_singleton(self, temp_settings_file: Path, reset_settings: None) -> None:
        """같은 인스턴스 반환"""
        first = get_settings(temp_settings_file)
        second = get_settings()

        assert first is second

    def test_properties(self, temp_settings_file: Path, reset_settings: None) -> None:
        """속성 접근"""
        settings = get_settings(temp_settings_file)

        assert settings.mode == RunMode.SANDBOX
        assert settings.web_secret_key == "test_jwt_secret_key_xyz"
        assert settings.db_path == Paths.SANDBOX_DB
        assert settings.tz.utcoffset(None) == timedelta(hours=-3)

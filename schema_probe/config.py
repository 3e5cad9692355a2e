"""
配置管理模块

支持通过环境变量、.env 文件或代码配置

环境变量:
    | 变量                           | 说明                            |
    |-------------------------------|---------------------------------|
    | SUPABASE_URL                  | 远程存储地址（必填）              |
    | SUPABASE_ANON_KEY             | 远程存储 API Key（必填）          |
    | SCHEMA_PROBE_HOST_SUFFIX      | 允许的主机后缀，默认 supabase.co  |
    | SCHEMA_PROBE_TIMEOUT          | 整体超时（秒）                    |
    | SCHEMA_PROBE_REQUEST_TIMEOUT  | 单次请求超时（秒）                |
    | SCHEMA_PROBE_LOG_LEVEL        | 日志级别                         |

    兼容前端项目的 REACT_APP_SUPABASE_URL / REACT_APP_SUPABASE_ANON_KEY
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from dotenv import find_dotenv, load_dotenv

from .models.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


URL_ENV_KEYS = ("SUPABASE_URL", "REACT_APP_SUPABASE_URL")
KEY_ENV_KEYS = ("SUPABASE_ANON_KEY", "SUPABASE_KEY", "REACT_APP_SUPABASE_ANON_KEY")

# JWT 形式的 key 以 base64 编码的 '{"' 开头
JWT_PREFIX = "eyJ"
MIN_KEY_LENGTH = 100
PLACEHOLDER_MARKERS = ("your-", "here")
DEFAULT_REQUEST_TIMEOUT = 10.0


def _first_env(keys) -> Optional[str]:
    for key in keys:
        value = os.environ.get(key)
        if value:
            return value.strip()
    return None


def _float_env(key: str, default: Optional[float]) -> Optional[float]:
    value = os.environ.get(key)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {value!r}")


@dataclass
class ProbeConfig:
    """
    验证工具配置

    支持多种配置来源:
    1. 代码直接传参
    2. 环境变量 (SUPABASE_URL, SUPABASE_ANON_KEY 等)
    3. .env 文件（load_env_file）
    """

    # 连接配置
    url: Optional[str] = None  # 远程存储地址
    api_key: Optional[str] = None  # 远程存储 API Key
    host_suffix: str = "supabase.co"  # 允许的主机后缀

    # 超时配置
    timeout: Optional[float] = None  # 整体运行超时（秒），None 不限制
    request_timeout: Optional[float] = None  # 单次请求超时（秒），默认 10

    # 日志配置
    log_level: str = "INFO"
    debug: bool = False

    def __post_init__(self):
        """从环境变量读取配置"""
        if self.url is None:
            self.url = _first_env(URL_ENV_KEYS)

        if self.api_key is None:
            self.api_key = _first_env(KEY_ENV_KEYS)

        if env_suffix := os.environ.get("SCHEMA_PROBE_HOST_SUFFIX"):
            self.host_suffix = env_suffix

        if self.timeout is None:
            self.timeout = _float_env("SCHEMA_PROBE_TIMEOUT", None)

        if self.request_timeout is None:
            self.request_timeout = _float_env("SCHEMA_PROBE_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)

        if env_level := os.environ.get("SCHEMA_PROBE_LOG_LEVEL"):
            self.log_level = env_level.upper()

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None, **overrides) -> "ProbeConfig":
        """从环境变量创建配置（可先加载 .env 文件）"""
        load_env_file(env_file)
        return cls(**overrides)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "ProbeConfig":
        """从字典创建配置"""
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in config_dict.items() if k in names})

    def problems(self) -> List[str]:
        """返回所有配置问题（空列表表示有效）"""
        problems = []

        if not self.url:
            problems.append(f"missing remote endpoint URL (set {URL_ENV_KEYS[0]})")
        else:
            problems.extend(self._url_problems(self.url))

        if not self.api_key:
            problems.append(f"missing remote API key (set {KEY_ENV_KEYS[0]})")
        else:
            problems.extend(self._key_problems(self.api_key))

        if self.timeout is not None and self.timeout <= 0:
            problems.append("timeout must be positive")
        if self.request_timeout <= 0:
            problems.append("request timeout must be positive")
        return problems

    def validate(self) -> bool:
        """
        验证配置有效性

        Raises:
            ConfigurationError: 参数缺失或格式错误
        """
        problems = self.problems()
        if problems:
            raise ConfigurationError("invalid connection configuration", problems=problems)
        return True

    def _url_problems(self, url: str) -> List[str]:
        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError, ValueError):
            return [f"{URL_ENV_KEYS[0]} is not a valid URL: {url!r}"]

        if parsed.scheme != "https" or not parsed.host:
            return [f"{URL_ENV_KEYS[0]} must be an https URL with a host: {url!r}"]

        suffix = self.host_suffix.lstrip(".")
        host = parsed.host.lower()
        if host != suffix and not host.endswith("." + suffix):
            return [f"{URL_ENV_KEYS[0]} host '{host}' does not belong to '{suffix}' "
                    f"(expected https://your-project-id.{suffix})"]
        return []

    def _key_problems(self, key: str) -> List[str]:
        problems = []
        if len(key) < MIN_KEY_LENGTH or not key.startswith(JWT_PREFIX):
            problems.append(f"{KEY_ENV_KEYS[0]} should be a JWT token starting with '{JWT_PREFIX}'")
        if any(marker in key for marker in PLACEHOLDER_MARKERS):
            problems.append(f"{KEY_ENV_KEYS[0]} appears to be a placeholder value")
        return problems

    def configure_logging(self) -> None:
        """按配置初始化日志"""
        level = logging.DEBUG if self.debug else getattr(logging, self.log_level.upper(), logging.INFO)
        logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        logging.getLogger("schema_probe").setLevel(level)
        # httpx 每个请求都会打 INFO 日志
        if not self.debug:
            logging.getLogger("httpx").setLevel(logging.WARNING)

    @property
    def masked_key(self) -> str:
        """日志中显示的脱敏 key"""
        if not self.api_key:
            return "<unset>"
        return f"{self.api_key[:6]}...{self.api_key[-4:]}"

    def __repr__(self) -> str:
        return f"ProbeConfig(url={self.url!r}, api_key={self.masked_key!r}, timeout={self.timeout})"


def load_env_file(env_file: Optional[Path] = None) -> bool:
    """
    加载 .env 文件（已存在的环境变量不会被覆盖）

    Returns:
        是否加载到文件
    """
    if env_file is not None:
        loaded = load_dotenv(dotenv_path=env_file)
    else:
        # 从当前工作目录向上查找 .env
        loaded = load_dotenv(find_dotenv(usecwd=True))
    if loaded:
        logger.debug(f"已加载 .env 文件: {env_file or '.env'}")
    return loaded

"""
应用配置模块 (Application Configuration Module)

使用 Pydantic Settings 管理 Inkwell 博客平台的所有配置项，支持从 .env 文件和环境变量读取。
提供数据库连接、Redis 缓存、JWT 认证、限流和密码重置等各模块的配置管理。

Uses Pydantic Settings to manage all configuration items for the Inkwell blog platform,
supporting reading from .env files and environment variables. Provides configuration
for database connections, Redis cache, JWT authentication, rate limiting and password reset.
"""
import logging
import secrets

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    应用全局配置类 (Application Global Configuration Class)

    字段名自动映射同名环境变量（不区分大小写），支持 .env 文件加载。

    Field names automatically map to same-named environment variables (case insensitive),
    supporting .env file loading.
    """

    # 数据库配置 (Database Configuration)
    postgres_host: str = "localhost"  # PostgreSQL 主机地址 (PostgreSQL Host)
    postgres_port: int = 5432  # PostgreSQL 端口号 (PostgreSQL Port)
    postgres_db: str = "inkwell"  # 数据库名称 (Database Name)
    postgres_user: str = "inkwell"  # 数据库用户名 (Database Username)
    postgres_password: str = "inkwell_dev_password"  # 数据库密码 (Database Password)
    database_url_override: str = ""  # 完整 DSN，优先于上面的字段 (Full DSN, wins over the fields above)

    # Redis 配置 (Redis Configuration)
    redis_host: str = "localhost"  # Redis 主机地址 (Redis Host)
    redis_port: int = 6379  # Redis 端口号 (Redis Port)

    # JWT 认证配置 (JWT Authentication Configuration)
    # ⚠️ 生产环境必须通过环境变量 JWT_SECRET_KEY 设置！未设置时自动生成随机密钥（每次重启会变化）
    # ⚠️ MUST set JWT_SECRET_KEY env var in production! Auto-generated random key changes on every restart.
    jwt_secret_key: str = ""  # JWT 签名密钥 (JWT Secret Key)
    jwt_algorithm: str = "HS256"  # JWT 算法 (JWT Algorithm)
    jwt_access_token_expire_minutes: int = 120  # 访问令牌过期时间（分钟） (Access Token Expiry Minutes)
    jwt_refresh_token_expire_days: int = 7  # 刷新令牌过期时间（天） (Refresh Token Expiry Days)

    # 限流配置 (Rate Limiting Configuration)
    enable_rate_limiting: bool = True  # 是否启用限流 (Enable Rate Limiting)
    rate_limit_backend: str = "memory"  # 计数存储：memory/redis (Counter store: memory/redis)
    comment_rate_limit_max: int = 5  # 评论：窗口内最大次数 (Comments per window)
    comment_rate_limit_window_seconds: int = 15 * 60  # 评论限流窗口 (Comment window)
    auth_rate_limit_max: int = 5  # 登录：窗口内最大次数 (Login attempts per window)
    auth_rate_limit_window_seconds: int = 15 * 60  # 登录限流窗口 (Login window)
    password_reset_rate_limit_max: int = 3  # 找回密码：窗口内最大次数 (Reset requests per window)
    password_reset_rate_limit_window_seconds: int = 60 * 60  # 找回密码限流窗口 (Reset window)

    # 密码重置配置 (Password Reset Configuration)
    password_reset_token_ttl_hours: int = 1  # 重置令牌有效期（小时） (Reset Token TTL Hours)
    password_reset_max_per_hour: int = 3  # 每小时最多申请次数 (Max Requests Per Hour)
    token_cleanup_interval_seconds: int = 3600  # 过期令牌清理间隔 (Expired Token Cleanup Interval)

    # 站点配置 (Site Configuration)
    site_name_default: str = "Inkwell"  # 默认站点名称 (Default Site Name)
    environment: str = "development"  # 运行环境：development/production (Runtime Environment)
    frontend_url: str = "http://localhost:3000"  # 前端 URL (Frontend URL)
    log_level: str = "INFO"  # 日志级别 (Log Level)

    @property
    def database_url(self) -> str:
        """
        构造 PostgreSQL 异步连接 URL (Build PostgreSQL Async Connection URL)

        生成适用于 asyncpg 驱动的连接字符串；设置了 DATABASE_URL_OVERRIDE 时直接使用它。

        Generates a connection string for the asyncpg driver; DATABASE_URL_OVERRIDE wins when set.
        """
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def redis_url(self) -> str:
        """构造 Redis 连接 URL，默认使用数据库 0。"""
        return f"redis://{self.redis_host}:{self.redis_port}/0"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}  # Pydantic 配置：自动加载 .env 文件 (Pydantic Config: Auto-load .env file)


# 全局配置实例 (Global Configuration Instance)
settings = Settings()

# JWT 密钥安全检查：未设置时生成随机密钥并警告
if not settings.jwt_secret_key or settings.jwt_secret_key == "change-me-in-production":
    settings.jwt_secret_key = secrets.token_urlsafe(64)
    logger.warning(
        "JWT_SECRET_KEY 未设置，已自动生成随机密钥。此密钥在每次重启后会变化，所有已签发的 token 将失效。"
        " | JWT_SECRET_KEY not set, using auto-generated random key. "
        "All issued tokens will be invalidated on restart. "
        "Set JWT_SECRET_KEY environment variable in production!"
    )

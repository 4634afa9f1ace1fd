"""
核心模块包 (Core Module Package)

Inkwell 后端的基础组件：配置管理、数据库连接、Redis、安全认证、依赖注入、异常体系与限流。

Foundational components of the Inkwell backend: configuration, database and
Redis connections, authentication, dependency injection, the exception
taxonomy and rate limiting.
"""

"""
Inkwell 路由模块包 (Inkwell Router Module Package)

本包包含 Inkwell 后端 API 的所有路由模块，按功能域进行组织。

路由模块组织结构 (Router Module Organization):
- auth.py: 用户认证（注册、登录、JWT令牌管理、找回与重置密码）
- settings.py: 站点设置（管理员读写、默认值初始化、公开读取）
- comments.py: 读者评论（发表、编辑、删除、公开列表）
- admin_comments.py: 评论审核（筛选分页、统计、通过、标记垃圾、删除）

路由注册:
所有路由模块在 main.py 中通过 app.include_router() 统一注册，使用 /api/v1/ 前缀。
"""

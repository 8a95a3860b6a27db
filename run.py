# run.py
"""
run.py
Flask 服务启动脚本（本地 / 内网开发用）
生产环境请用 WSGI 服务器加载 paytrack.app_factory:create_app()
"""
import os

from paytrack.app_factory import create_app


def main():
    # 1️创建 Flask app（数据库在 create_app 中初始化）
    app = create_app()

    print("DB URI:", app.config["DATABASE_URL"])
    print(app.url_map)

    # 2️启动参数
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 5000))
    debug = os.getenv("FLASK_DEBUG", "false").lower() in ("1", "true", "yes")

    # 3️启动服务
    app.run(host=host, port=port, debug=debug, use_reloader=False)


if __name__ == "__main__":
    main()

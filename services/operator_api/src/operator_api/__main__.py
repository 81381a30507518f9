"""Dev entry point: python -m operator_api."""
from dispatch_engine.engine import build_engine

from operator_api.app import create_app
from operator_api.config import OperatorApiConfig


def main() -> None:
    config = OperatorApiConfig()
    app = create_app(build_engine(), log_level=config.log_level)
    app.run(host=config.host, port=config.port)


if __name__ == "__main__":
    main()

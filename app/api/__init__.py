import importlib
import logging
import pkgutil

logger = logging.getLogger(__name__)


def include_routers(app, package_name, package_path):
    """패키지 안에서 `router`를 가진 모듈을 모두 찾아 앱에 등록"""
    for _, module_name, is_pkg in pkgutil.iter_modules(package_path):
        if is_pkg:
            continue
        module = importlib.import_module(f"app.{package_name}.{module_name}")
        router = getattr(module, "router", None)
        if router is not None:
            app.include_router(router)
            logger.debug(f"Router registered: {module_name}")

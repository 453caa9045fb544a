# 로깅 설정
# - 루트 로거에 스트림 핸들러 1개만 설치 (여러 번 호출해도 중복 설치 안 됨)
# - 각 모듈은 logging.getLogger(__name__)으로 로거를 가져다 씁니다

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_HANDLER_NAME = "user-directory"


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())

    if any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    # 주니어 개발자님께: pymongo 드라이버는 DEBUG 레벨에서 로그가 매우 많습니다.
    logging.getLogger("pymongo").setLevel(logging.WARNING)

# community_app/core/config.py

import os # 'os' 모듈: 환경 변수를 읽기 위해 사용합니다.
from datetime import timedelta

class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰 서명에 사용되는 비밀 키입니다. .env 파일에 정의된 값을 읽어옵니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=14)
    # 마지막 요청 후 이 시간이 지나면 사용자의 좋아요/즐겨찾기 감시를 닫습니다.
    SESSION_IDLE_TIMEOUT = timedelta(minutes=int(os.getenv('SESSION_IDLE_MINUTES', 60)))

    # 가입/로그인을 허용하는 대학 메일 도메인
    ALLOWED_EMAIL_DOMAIN = os.getenv('ALLOWED_EMAIL_DOMAIN', '@u.tsukuba.ac.jp')

    # 목록 화면: 한 페이지에 표시할 행(row) 수. 열 수는 클라이언트가 측정해서 전달합니다.
    ROWS_PER_PAGE = int(os.getenv('ROWS_PER_PAGE', 10))
    # 타임라인 1회 조회 시 가져오는 최대 게시글 수
    TIMELINE_FETCH_LIMIT = int(os.getenv('TIMELINE_FETCH_LIMIT', 50))
    TAG_SUGGESTION_LIMIT = int(os.getenv('TAG_SUGGESTION_LIMIT', 10))

    # Firestore 호출 타임아웃(초). 만료 시 실패로 간주되어 낙관적 업데이트가 롤백됩니다.
    STORE_TIMEOUT_SECONDS = float(os.getenv('STORE_TIMEOUT_SECONDS', 10))

class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    # 개발용 Firebase 프로젝트의 서비스 계정 키 파일 경로
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH')

class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다."""
    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'testing-secret-key-with-enough-length-for-hs256')
    # 테스트용 Firebase 프로젝트의 서비스 계정 키 파일 경로
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')

# FLASK_ENV 값에 따라 create_app에서 설정 클래스를 선택하는 데 사용됩니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig
)

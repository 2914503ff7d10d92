# saenggibu/core/config.py

import os # 'os' 모듈: 환경 변수를 읽기 위해 사용합니다.

class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰 서명 키. 인증 자체는 외부 협력자가 담당하고, 여기서는 토큰 검증에만 사용합니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')

    # 키-값 저장소가 blob 파일을 저장할 디렉터리. 비어 있으면 메모리 저장소를 사용합니다.
    STORAGE_PATH = os.getenv('SAENGGIBU_STORAGE_PATH')

    # 컬렉션 및 상호작용 blob 키 (기존 클라이언트 저장소와 동일한 키 이름)
    AGENTS_KEY = os.getenv('SAENGGIBU_AGENTS_KEY', 'huntfire_agents')
    ANALYSES_KEY = os.getenv('SAENGGIBU_ANALYSES_KEY', 'saenggibu_analyses')
    INTERACTION_KEY = os.getenv('SAENGGIBU_INTERACTION_KEY', 'huntfire_interaction')

    # 피드 계산 파라미터
    TRENDING_WINDOW_HOURS = int(os.getenv('TRENDING_WINDOW_HOURS', 24))
    TRENDING_LIMIT = int(os.getenv('TRENDING_LIMIT', 3))
    RECOMMENDATION_LIMIT = int(os.getenv('RECOMMENDATION_LIMIT', 10))

class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    # 개발 환경은 로컬 디렉터리에 blob을 저장합니다.
    STORAGE_PATH = os.getenv('SAENGGIBU_STORAGE_PATH', os.path.join(os.getcwd(), '.saenggibu_storage'))

class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다."""
    TESTING = True
    DEBUG = False
    # 테스트는 항상 메모리 저장소를 사용하여 실제 파일을 건드리지 않습니다.
    STORAGE_PATH = None
    JWT_SECRET_KEY = 'testing-secret-key-that-is-long-enough'

# config_by_name: FLASK_ENV 값에 따라 create_app에서 적절한 설정 클래스를 선택하는 데 사용됩니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig
)

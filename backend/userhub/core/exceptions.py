# 커스텀 예외 클래스 정의
# - 서비스/저장소 레이어는 HTTP를 모르고, 이 예외들만 던집니다.
# - 라우터에서 각 예외를 HTTP 상태 코드로 변환합니다.

class UserServiceError(Exception):
    """사용자 서비스 관련 기본 예외 클래스

    모든 사용자 관련 예외의 기본 클래스입니다.
    try-except 블록에서 이 타입 하나로 서비스 예외 전체를 잡을 수 있습니다.
    """
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class DuplicateEmailError(UserServiceError):
    """이미 등록된 이메일로 사용자를 만들려고 할 때 발생하는 예외

    Attributes:
        email: 중복된 이메일 주소
    """
    def __init__(self, email: str):
        self.email = email
        super().__init__("Email is already registered")


class InvalidIdError(UserServiceError):
    """식별자가 올바른 ObjectId 형식이 아닐 때 발생하는 예외"""
    def __init__(self, value: str):
        self.value = value
        super().__init__("Invalid ID")


class StorageError(UserServiceError):
    """MongoDB 호출이 실패했을 때 발생하는 예외

    연결 실패, 타임아웃, Beanie 미초기화 등을 포함합니다. 재시도하지 않습니다.

    Attributes:
        operation: 실패한 저장소 작업 이름 (예: "insert")
    """
    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"[{operation}] 저장소 호출 실패: {message}")


class HashingError(UserServiceError):
    """비밀번호 해싱/검증 자체를 실행할 수 없을 때 발생하는 예외"""
    def __init__(self, message: str):
        super().__init__(f"비밀번호 해싱 실패: {message}")

# custom exception 정의 및 관리


class JanMapException(Exception):  # 예외 구조 정의
    status_code = 500

    def __init__(self, message: str, code: str = "INTERNAL_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


# ===== 입력 검증 오류 (422) =====


class ValidationException(JanMapException):
    status_code = 422

    def __init__(self, message: str = "入力内容に不備があります。", code: str = "VALIDATION_ERROR"):
        super().__init__(message, code=code)


class InvalidLocationException(ValidationException):
    def __init__(self, message: str = "位置情報が正しくありません。"):
        super().__init__(message, code="INVALID_LOCATION")


class StationNotFoundException(ValidationException):
    """요청에 포함된 역 ID가 존재하지 않음 => 잘못된 입력으로 취급"""

    def __init__(self, message: str = "指定された駅が存在しません。"):
        super().__init__(message, code="STATION_NOT_FOUND")


# ===== 리소스 없음 (404) =====


class NotFoundException(JanMapException):
    status_code = 404

    def __init__(self, message: str, code: str = "NOT_FOUND"):
        super().__init__(message, code=code)


class ShopNotFoundException(NotFoundException):
    def __init__(self, message: str = "指定された雀荘が見つかりません。"):
        super().__init__(message, code="SHOP_NOT_FOUND")


class StationGroupNotFoundException(NotFoundException):
    def __init__(self, message: str = "指定された駅グループが見つかりません。"):
        super().__init__(message, code="STATION_GROUP_NOT_FOUND")


class LocationNotFoundException(NotFoundException):
    """URL slug로 지정된 都道府県/駅이 없음"""

    def __init__(self, message: str = "指定された駅が見つかりません。"):
        super().__init__(message, code="LOCATION_NOT_FOUND")


# ===== 외부 의존성 실패 =====


class GeocodingFailedException(JanMapException):
    status_code = 422

    def __init__(self, message: str = "指定された住所の座標を取得できませんでした。"):
        super().__init__(message, code="GEOCODING_FAILED")

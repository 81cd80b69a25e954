"""
JanMap Backend - 雀荘 검색 서비스의 역 근접성 코어
"""

__version__ = "1.2.0"

# skin_admin/utils/__init__.py
"""
유틸리티 모듈 패키지
"""

from .handlers import ApiResponse, RideShareAPI, build_api

__all__ = ["ApiResponse", "RideShareAPI", "build_api"]

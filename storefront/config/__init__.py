from storefront.config.settings import Config, TestingConfig

__all__ = ["Config", "TestingConfig"]

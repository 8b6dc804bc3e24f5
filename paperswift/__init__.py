__all__ = ['app', 'create_app']


def __getattr__(name: str):
    if name in ('app', 'create_app'):
        from . import main

        return getattr(main, name)
    raise AttributeError(name)

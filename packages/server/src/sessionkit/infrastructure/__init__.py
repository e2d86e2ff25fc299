# packages/server/src/sessionkit/infrastructure/__init__.py

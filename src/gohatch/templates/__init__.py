"""
gohatch.templates - Bundled Project Templates
=============================================

This package holds the template tree for generated Go web services under
``go-tpl/``. Templates are read through :mod:`gohatch.store` and rendered by
:mod:`gohatch.renderer`.

Template Naming Convention
--------------------------
- Templates end with the ``.tmpl`` extension
- Output filename = template name without ``.tmpl``
- Exceptions: ``.go.mod.tmpl`` → ``go.mod``, ``gitignore.tmpl`` → ``.gitignore``

Layout
------
Project:
    - .go.mod.tmpl, gitignore.tmpl, README.md.tmpl, Dockerfile.tmpl
    - config/conf.yml.tmpl

Entry point:
    - cmd/main.go.tmpl

Infrastructure (infra/):
    - config, logger, dbs, jwt
    - cache (only with Redis), monitor (only with metrics)

Business logic (logic/):
    - user and auth services, shared errors and constants

HTTP layer (web/):
    - router, response helpers, auth middleware, REST handlers, request types

Template Context
----------------
All templates see the fields of :class:`gohatch.models.VariableContext`
by CamelCase name: ``.ProjectName``, ``.ModulePath``, ``.AuthorName``,
``.AuthorEmail``, ``.Description``, ``.DatabaseType``, ``.RedisEnabled``,
``.MetricsEnabled``, ``.PprofEnabled``, ``.GeneratedAt``.
"""

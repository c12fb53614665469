# Services package.
#
# Application services (one class per use-case family) coordinate the
# domain services and the repositories inside explicit transactions:
#
#   authentication_service  — sign up / login / logout / session lookup
#   thread_service          — CRUD + cursor pagination for Thread
#   comment_service         — CRUD + cursor pagination for Comment
#
# Supporting modules:
#
#   transaction   — the one place a transaction is committed or rolled back
#   uniqueness    — "does a row with this key already exist" checks
#   identity      — password hashing, session ids, the User factory
#   validation    — field checks run before any transaction opens
#
# Services receive every collaborator (storage, identity, clock, logger)
# through their constructor; ``app.dependencies`` assembles them per request.

# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access:
#
#   article_service : CRUD, tag resolution and edit authorization for Article
#   user_service    : administration (edit, delete with cascade) for User
#   role_service    : role membership helpers shared by both handlers
#
# All service functions accept an AsyncSession (and, where roles are
# involved, an IdentityService) so that the router layer controls the
# transaction boundary via the ``get_db`` dependency.

# Services package.
#
# Each module exposes async functions that encapsulate business logic and
# database access for one aggregate of the admin console:
#
#   article_service     CRUD, filtering and pagination for Article
#   category_service    CRUD for Category (article counts computed)
#   comment_service     listing, creation and editing of Comment
#   moderation          status transitions + Article.comment_count upkeep
#   user_service        CRUD for back-office User accounts
#   newsletter_service  newsletter subscriber list
#   contact_service     contact-form inbox
#   dashboard_service   aggregate figures for the admin home page
#
# All service functions take an AsyncSession as their first argument and
# flush without committing; the router layer owns the transaction through
# the ``get_db`` dependency.

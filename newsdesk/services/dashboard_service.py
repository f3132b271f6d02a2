"""
Dashboard service: aggregate figures for the admin home page.

All windows are computed in UTC relative to *now*:

- "today"       [midnight(now), now]
- "this week"   [midnight(now) - 7 days, now]
- "last week"   [midnight(now) - 14 days, midnight(now) - 7 days)
- "this month"  [first day of now's month, now]

Week-over-week change is reported as an integer percentage, see
``change_percentage``.
"""
from datetime import datetime, timedelta, timezone

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.config import settings
from newsdesk.models import Article, Category, Comment, CommentStatus, User, article_categories
from newsdesk.schemas import ArticleStat, CategoryStat, DashboardStats, UserGrowthStat

USER_GROWTH_MONTHS = 6


def change_percentage(current: int, previous: int) -> int:
    """
    Percentage change from *previous* to *current*, rounded to an int.
    Growth from zero is reported as 100 (or 0 when both are zero).
    """
    if previous == 0:
        return 0 if current == 0 else 100
    return round((current - previous) / previous * 100)


def as_utc(moment: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC."""
    if moment is None or moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=timezone.utc)


def _midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _month_start(moment: datetime, months_back: int = 0) -> datetime:
    index = moment.year * 12 + (moment.month - 1) - months_back
    return _midnight(moment).replace(year=index // 12, month=index % 12 + 1, day=1)


async def _count(db: AsyncSession, model, *where) -> int:
    q = select(func.count()).select_from(model).where(*where)
    return (await db.execute(q)).scalar_one()


async def _published_between(
    db: AsyncSession, start: datetime, end: datetime, inclusive_end: bool = True
) -> int:
    upper = Article.published_at <= end if inclusive_end else Article.published_at < end
    return await _count(db, Article, Article.published_at >= start, upper)


async def get_dashboard_stats(
    db: AsyncSession,
    start: datetime | None = None,
    end: datetime | None = None,
    now: datetime | None = None,
) -> DashboardStats:
    """
    Build the dashboard figures.  *start*/*end* bound the "published in
    window" totals and rankings; the relative windows hang off *now*.
    """
    now = now or datetime.now(timezone.utc)
    start = start or datetime(1970, 1, 1, tzinfo=timezone.utc)
    end = end or now
    top_n = settings.DASHBOARD_TOP_N

    today = _midnight(now)
    one_week_ago = today - timedelta(days=7)
    two_weeks_ago = today - timedelta(days=14)
    month_start = _month_start(now)

    in_window = (Article.published_at >= start, Article.published_at <= end)

    total_articles = await _count(db, Article, *in_window)
    total_views = (
        await db.execute(select(func.coalesce(func.sum(Article.view_count), 0)).where(*in_window))
    ).scalar_one()

    articles_this_week = await _published_between(db, one_week_ago, now)
    articles_last_week = await _published_between(db, two_weeks_ago, one_week_ago, inclusive_end=False)

    users_this_week = await _count(db, User, User.created_at >= one_week_ago)
    users_last_week = await _count(
        db, User, User.created_at >= two_weeks_ago, User.created_at < one_week_ago
    )

    # Top categories by number of articles published in the window.
    article_total = func.count(article_categories.c.article_id).label("article_total")
    top_categories_q = (
        select(Category.id, Category.name, article_total)
        .join(article_categories, article_categories.c.category_id == Category.id)
        .join(Article, Article.id == article_categories.c.article_id)
        .where(*in_window)
        .group_by(Category.id, Category.name)
        .order_by(desc(article_total), Category.name)
        .limit(top_n)
    )
    top_categories = [
        CategoryStat(id=cid, name=name, count=count)
        for cid, name, count in (await db.execute(top_categories_q)).all()
    ]

    top_articles_q = (
        select(Article)
        .where(*in_window)
        .order_by(desc(Article.view_count), desc(Article.id))
        .limit(top_n)
    )
    top_articles = [
        ArticleStat(
            id=a.id,
            title=a.title,
            views=a.view_count,
            likes=a.like_count,
            comments=a.comment_count,
        )
        for a in (await db.execute(top_articles_q)).scalars().all()
    ]

    user_growth: list[UserGrowthStat] = []
    for months_back in range(USER_GROWTH_MONTHS - 1, -1, -1):
        lower = _month_start(now, months_back)
        upper = _month_start(now, months_back - 1)
        user_growth.append(
            UserGrowthStat(
                date=lower.strftime("%Y-%m"),
                count=await _count(db, User, User.created_at >= lower, User.created_at < upper),
            )
        )

    return DashboardStats(
        total_articles=total_articles,
        total_categories=await _count(db, Category),
        total_users=await _count(db, User),
        total_views=total_views,
        total_comments=await _count(db, Comment),
        pending_comments=await _count(db, Comment, Comment.status == CommentStatus.PENDING),
        articles_published_today=await _published_between(db, today, now),
        articles_published_this_week=articles_this_week,
        articles_published_this_month=await _published_between(db, month_start, now),
        articles_change_percentage=change_percentage(articles_this_week, articles_last_week),
        users_change_percentage=change_percentage(users_this_week, users_last_week),
        categories_change_this_week=await _count(db, Category, Category.created_at >= one_week_ago),
        top_categories=top_categories,
        top_articles=top_articles,
        user_growth=user_growth,
    )

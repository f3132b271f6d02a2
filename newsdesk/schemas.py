from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from newsdesk.models import ArticleStatus, CommentStatus, UserRole


# --- Category ---

class CategoryBase(BaseModel):
    name: str = Field(max_length=100)
    description: str | None = None
    color: str | None = Field(None, max_length=20)
    display_order: int = 0
    active: bool = True


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, max_length=100)
    description: str | None = None
    color: str | None = Field(None, max_length=20)
    display_order: int | None = None
    active: bool | None = None


class CategoryResponse(CategoryBase):
    id: int
    slug: str
    article_count: int = 0
    created_at: datetime
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class CategorySummary(BaseModel):
    id: int
    name: str
    slug: str
    model_config = ConfigDict(from_attributes=True)


# --- User ---

class UserBase(BaseModel):
    username: str = Field(max_length=50)
    email: str = Field(max_length=255)
    display_name: str | None = None
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    role: UserRole = UserRole.READER
    bio: str | None = None
    active: bool = True


class UserCreate(UserBase):
    pass


class UserUpdate(BaseModel):
    email: str | None = Field(None, max_length=255)
    display_name: str | None = None
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    role: UserRole | None = None
    bio: str | None = None
    active: bool | None = None


class UserResponse(UserBase):
    id: int
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class UserDetail(UserResponse):
    articles: list["ArticleResponse"] = []


# --- Comment ---

class CommentBase(BaseModel):
    content: str = Field(min_length=1)
    user_name: str = Field(max_length=100)
    user_email: str | None = Field(None, max_length=255)


class CommentCreate(CommentBase):
    # Admin fast path: callers may publish directly as APPROVED.
    status: CommentStatus = CommentStatus.PENDING


class CommentUpdate(BaseModel):
    content: str | None = Field(None, min_length=1)
    user_name: str | None = Field(None, max_length=100)
    user_email: str | None = Field(None, max_length=255)
    status: CommentStatus | None = None


class CommentStatusUpdate(BaseModel):
    status: CommentStatus


class CommentResponse(CommentBase):
    id: int
    article_id: int
    status: CommentStatus
    likes: int
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# --- Article ---

class ArticleBase(BaseModel):
    title: str = Field(max_length=200)
    content: str
    excerpt: str | None = Field(None, max_length=500)
    image_url: str | None = Field(None, max_length=1000)
    status: ArticleStatus = ArticleStatus.DRAFT
    featured: bool = False
    category_ids: list[int] = []


class ArticleCreate(ArticleBase):
    user_id: int


class ArticleUpdate(BaseModel):
    title: str | None = Field(None, max_length=200)
    content: str | None = None
    excerpt: str | None = Field(None, max_length=500)
    image_url: str | None = Field(None, max_length=1000)
    status: ArticleStatus | None = None
    featured: bool | None = None
    category_ids: list[int] | None = None


class ArticleStatusUpdate(BaseModel):
    status: ArticleStatus


class ArticleFeaturedUpdate(BaseModel):
    featured: bool


class ArticleResponse(BaseModel):
    id: int
    title: str
    slug: str
    excerpt: str | None
    image_url: str | None = None
    status: ArticleStatus
    featured: bool
    view_count: int
    comment_count: int
    like_count: int = 0
    share_count: int = 0
    published_at: datetime | None
    created_at: datetime
    user_id: int
    author: UserResponse | None = None
    categories: list[CategorySummary] = []
    model_config = ConfigDict(from_attributes=True)


class ArticleDetail(ArticleResponse):
    content: str
    comments: list[CommentResponse] = []


# --- Newsletter ---

class SubscriberCreate(BaseModel):
    email: str = Field(max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    name: str | None = Field(None, max_length=150)


class SubscriberResponse(BaseModel):
    id: int
    email: str
    name: str | None
    active: bool
    created_at: datetime
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class UnsubscribeRequest(BaseModel):
    email: str = Field(max_length=255)


# --- Contact ---

class ContactMessageCreate(BaseModel):
    name: str = Field(max_length=150)
    email: str = Field(max_length=255)
    subject: str = Field(max_length=300)
    message: str = Field(min_length=1)


class ContactMessageResponse(ContactMessageCreate):
    id: int
    is_read: bool
    is_replied: bool
    created_at: datetime
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class FlagUpdate(BaseModel):
    value: bool = True


# --- Pagination ---

class PaginatedResponse(BaseModel):
    items: list  # Will be typed in router
    total: int
    page: int
    page_size: int
    pages: int


# --- Dashboard ---

class CategoryStat(BaseModel):
    id: int
    name: str
    count: int


class ArticleStat(BaseModel):
    id: int
    title: str
    views: int
    likes: int
    comments: int


class UserGrowthStat(BaseModel):
    date: str  # YYYY-MM
    count: int


class DashboardStats(BaseModel):
    total_articles: int
    total_categories: int
    total_users: int
    total_views: int
    total_comments: int
    pending_comments: int
    articles_published_today: int
    articles_published_this_week: int
    articles_published_this_month: int
    articles_change_percentage: int
    users_change_percentage: int
    categories_change_this_week: int
    top_categories: list[CategoryStat] = []
    top_articles: list[ArticleStat] = []
    user_growth: list[UserGrowthStat] = []


# Required for forward-reference resolution (UserDetail.articles)
UserDetail.model_rebuild()

from app.database import SessionLocal, engine, Base
from app.models import Comment, Follow, Like, Post, Share, User
from app.models.enums import Role, Tier, Visibility
from app.schemas.auth import UserCreate
from app.schemas.posts import CommentCreate, PostCreate
from app.services import engagement
from app.services.accounts import register_user
from app.services.follows import follow
from app.services.posts import create_post

# Create tables
Base.metadata.create_all(bind=engine)

db = SessionLocal()

# Clear existing data
for model in (Share, Like, Comment, Follow, Post, User):
    db.query(model).delete()
db.commit()

PASSWORD = "SecurePass123!"

USERS = [
    ("Alice Johnson", "alice@example.com", "alicejohnson", Tier.FREE),
    ("Bob Smith", "bob@example.com", "bobsmith", Tier.PREMIUM),
    ("Charlie Brown", "charlie@example.com", "charliebrown", Tier.ENTERPRISE),
    ("Diana Prince", "diana@example.com", "dianaprince", Tier.PREMIUM),
    ("Eve Wilson", "eve@example.com", "evewilson", Tier.FREE),
    ("Frank Miller", "frank@example.com", "frankmiller", Tier.ENTERPRISE),
]

POSTS = [
    ("Just launched my new project! Check it out", Visibility.PUBLIC),
    ("Beautiful sunset today", Visibility.PUBLIC),
    ("Thoughts on the latest tech trends? #tech #innovation", Visibility.PUBLIC),
    ("Coffee and code", Visibility.PUBLIC),
    ("Travel plans for next month", Visibility.FOLLOWERS_ONLY),
    ("Personal note to self...", Visibility.PRIVATE),
]

COMMENTS = [
    "Great post!",
    "Thanks for sharing!",
    "Interesting perspective",
    "Well said",
]

users = [
    register_user(db, UserCreate(name=name, email=email, password=PASSWORD, username=username, tier=tier))
    for name, email, username, tier in USERS
]

admin = register_user(db, UserCreate(
    name="Site Admin", email="admin@example.com", password=PASSWORD, username="siteadmin", tier=Tier.ENTERPRISE,
))
admin.role = Role.ADMIN.value
db.commit()

# Each user writes one post per template slot it owns
posts = [
    create_post(db, users[i % len(users)].id, PostCreate(content=content, visibility=visibility))
    for i, (content, visibility) in enumerate(POSTS)
]
public_posts = [p for p in posts if p.visibility == Visibility.PUBLIC.value]

# Everyone follows the next two users around the ring
follows = 0
for i, user in enumerate(users):
    for step in (1, 2):
        follow(db, user.id, users[(i + step) % len(users)].id)
        follows += 1

likes = comments = shares = 0
for i, user in enumerate(users):
    for j, post in enumerate(public_posts):
        if post.user_id == user.id:
            continue
        engagement.like_post(db, post, user.id)
        likes += 1
        if (i + j) % 2 == 0:
            engagement.add_comment(db, post, user.id, CommentCreate(content=COMMENTS[(i + j) % len(COMMENTS)]))
            comments += 1
        if user.tier != Tier.FREE.value and j == 0:
            engagement.share_post(db, post, user.id)
            shares += 1

print("Database seeded successfully!")
print(f"  - {len(users) + 1} users (password: {PASSWORD}, admin: admin@example.com)")
print(f"  - {len(posts)} posts")
print(f"  - {follows} follows, {likes} likes, {comments} comments, {shares} shares")

db.close()

import logging

from competitii import workflows
from competitii.config import load_settings
from competitii.db.engine import get_sessionmaker, make_engine
from competitii.models import Base
from competitii.storage import SqlDrawStore


def main() -> None:
    """Reset the development database and fill it with a sample giveaway."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s")
    settings = load_settings()
    engine = make_engine(settings.db_url)

    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    store = SqlDrawStore(get_sessionmaker(engine))

    # A finished draw with winners ...
    workflows.create_draw(store, "Spring Giveaway")
    for user_id in (101, 202, 303, 404):
        workflows.join_draw(store, user_id)
    workflows.close_draw(store)
    spring = workflows.run_draw(store, default_count=settings.default_winner_count)

    # ... and an open one still taking entries.
    summer = workflows.create_draw(store, "Summer Giveaway")
    for user_id in (101, 505):
        workflows.join_draw(store, user_id)

    for referrer_id, referred_id in [(101, 202), (101, 303), (202, 404), (303, 505)]:
        workflows.record_referral(store, referrer_id, referred_id)

    stats = workflows.draw_stats(store)
    print(f"Seeded {stats.total_draws} draws and {stats.total_participants} entries.")
    print(f"{spring.title}: winners {list(spring.winners)}")
    print(f"{summer.title}: open as {summer.id}")
    for entry in workflows.top_referrers(store, settings.leaderboard_limit):
        print(f"  referrer {entry.referrer_id}: {entry.count} invite(s)")

    engine.dispose()


if __name__ == "__main__":
    main()

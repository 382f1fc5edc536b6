#!/usr/bin/env python3
"""
Recompute every user's level from their cumulative EXP.

Run after changing the leveling curve so stored levels match it again.

Run with: python scripts/recompute_levels.py [--dry-run]
"""

import argparse
import logging

from fitness_rpg.config import get_settings
from fitness_rpg.database import Database
from fitness_rpg.logging_config import setup_logging
from fitness_rpg.models import User
from fitness_rpg.services.leveling import level_for_cumulative_exp

logger = logging.getLogger("recompute_levels")


def recompute_levels(database: Database, dry_run: bool = False, batch_size: int = 100) -> int:
    """Fix users whose stored level disagrees with their EXP. Returns the count fixed."""
    fixed = 0
    with database.session() as db:
        user_ids = [row.id for row in db.query(User.id).order_by(User.id).all()]
        logger.info("Checking %d users", len(user_ids))
        
        for i, user_id in enumerate(user_ids):
            # Row lock keeps the API from changing EXP underneath us
            user = (
                db.query(User)
                .filter(User.id == user_id)
                .with_for_update()
                .populate_existing()
                .first()
            )
            if user is None:
                continue
            
            expected = level_for_cumulative_exp(user.exp or 0)
            if user.level != expected:
                logger.info("  %s: level %s -> %s (%s EXP)", user.id, user.level, expected, user.exp)
                user.level = expected
                fixed += 1
            
            # Commit in batches
            if (i + 1) % batch_size == 0 and not dry_run:
                db.commit()
        
        if dry_run:
            db.rollback()
        else:
            db.commit()
    
    logger.info("%s %d users", "Would fix" if dry_run else "Fixed", fixed)
    return fixed


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--dry-run", action="store_true", help="report without writing")
    args = parser.parse_args()
    
    settings = get_settings()
    setup_logging(settings.log_level, log_dir="")
    database = Database(settings.database_url).open()
    try:
        recompute_levels(database, dry_run=args.dry_run)
    finally:
        database.close()


if __name__ == "__main__":
    main()

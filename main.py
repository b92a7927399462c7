import argparse
import logging
import random
import uuid

from config.settings import load_settings
from data.models import SessionContext
from game.app import ExperimentApp
from game.tasks import TASKS, get_task


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one cognitive task.")
    parser.add_argument("--task", required=True, choices=sorted(TASKS))
    parser.add_argument("--seed", type=int, default=None, help="seed for trial generation")
    parser.add_argument("--participant", default="local", help="participant id")
    parser.add_argument("--name", default="Anonymous", help="participant name")
    parser.add_argument("--session", default=None, help="session id, generated when omitted")
    parser.add_argument("--share-data", action="store_true")
    parser.add_argument("--skip-practice", action="store_true")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    session = SessionContext(
        session_id=args.session or uuid.uuid4().hex[:12],
        participant_id=args.participant,
        participant_name=args.name,
        share_data=args.share_data,
    )
    task = get_task(args.task)(rng=random.Random(args.seed))
    logging.getLogger(__name__).info("Starting %s for %s (session %s)", task.label, session.participant_id, session.session_id)

    ExperimentApp(task, settings, session=session, skip_practice=args.skip_practice).run()


if __name__ == "__main__":
    main()

import asyncio

from config import settings
from config.logger import logger
from core.aggregator import DealAggregator
from core.bootstrap import BootstrapSequencer
from core.errors import DealsFinderError
from core.scroll import ScrollTrigger
from services.copywriter import Copywriter
from services.deals_api import DealsAPI
from services.post_builder import build_external_post, build_post, clean_clipboard_text

HELP = """Commands:
  <keyword>              fresh search
  /more                  load the next page (Load More button)
  /scroll                sentinel became visible
  /list                  show the current page of deals
  /min <n>               minimum discount
  /max <n>               max results shown
  /codes on|off          only deals with coupon codes
  /key asin|url|title    dedupe key for future merges
  /debug on|off          ask the backend for raw promotions
  /post <id>             print the post for a deal
  /rewrite <id>          AI rewrite of the post
  /remove <id>           drop a deal
  /meta <url>            post for an external link
  /stats                 API usage monitor
  /quit"""


def print_deals(aggregator: DealAggregator) -> None:
    view = aggregator.projection
    print(f"\n📦 Showing {len(view.display)} of {len(view.filtered)} deals "
          f"({len(aggregator.deals)} loaded)")
    for deal in view.display:
        badge = "🆕 " if aggregator.is_highlighted(deal.local_id) else ""
        print(f"  [{deal.local_id}] {badge}{deal.discount:.0f}% OFF  ${deal.current_price:.2f}  {deal.title[:60]}")
    if aggregator.error:
        print(f"\n{aggregator.error}")
    if aggregator.session.exhausted:
        print("\n🏁 No more pages for this search")


def _flag(arg: str) -> bool:
    return arg.lower() in ("on", "1", "true", "yes")


async def handle_command(line, aggregator, trigger, copywriter, api) -> bool:
    """Run one console command. Returns False when the user wants to quit."""
    command, _, arg = line.strip().partition(" ")
    arg = arg.strip()

    if command in ("/quit", "/exit"):
        return False
    if command == "/help":
        print(HELP)
    elif command == "/more":
        await aggregator.fetch_page()
        print_deals(aggregator)
    elif command == "/scroll":
        result = await trigger.on_visibility(True)
        if result is None:
            print("Nothing to load")
        print_deals(aggregator)
    elif command == "/list":
        print_deals(aggregator)
    elif command == "/min":
        aggregator.set_filters(min_discount=int(arg or 0))
        print_deals(aggregator)
    elif command == "/max":
        aggregator.set_filters(max_results=int(arg or 1))
        print_deals(aggregator)
    elif command == "/codes":
        aggregator.set_filters(require_code=_flag(arg))
        print_deals(aggregator)
    elif command == "/key":
        try:
            aggregator.set_dedupe_key(arg or settings.DEFAULT_DEDUPE_KEY)
        except ValueError as e:
            print(f"❌ {e}")
        print(f"Dedupe key: {aggregator.dedupe_key}")
    elif command == "/debug":
        aggregator.debug_promotions = _flag(arg)
    elif command in ("/post", "/rewrite", "/remove"):
        deal = aggregator.find(int(arg)) if arg.isdigit() else None
        if not deal:
            print(f"No deal with id {arg!r}")
        elif command == "/post":
            print(clean_clipboard_text(deal.rewritten or build_post(deal)))
        elif command == "/remove":
            aggregator.remove(deal.local_id)
            print_deals(aggregator)
        else:
            try:
                text = await copywriter.rewrite(deal)
            except DealsFinderError as e:
                print(f"{copywriter.status} {e}")
            else:
                aggregator.patch_rewritten(deal.local_id, text)
                print(f"{copywriter.status}\n\n{text}")
    elif command == "/meta":
        meta = await api.fetch_metadata(arg)
        print(clean_clipboard_text(build_external_post(meta, arg)))
    elif command == "/stats":
        stats = await api.monitor_stats()
        print(f"📊 Daily {stats.daily_count} ({stats.daily_percent}%) | "
              f"Monthly {stats.monthly_count} ({stats.monthly_percent}%) | "
              f"Success {stats.success_rate}% | Errors {stats.error_count}")
        if stats.daily_warning:
            print("⚠️ Near daily limit")
        if stats.monthly_warning:
            print("⚠️ Near monthly limit")
    elif command.startswith("/"):
        print(HELP)
    else:
        try:
            await aggregator.search(line)
        except DealsFinderError as e:
            print(e.user_message)
        print_deals(aggregator)
    return True


async def run_finder():
    logger.info("🔥 Starting Deals Finder...")

    api = DealsAPI()
    aggregator = DealAggregator(api)
    trigger = ScrollTrigger(aggregator)
    copywriter = Copywriter(api)

    # Seed keywords load in the background; manual searches may interleave
    bootstrap = BootstrapSequencer(
        aggregator.search,
        settings.BOOTSTRAP_KEYWORDS,
        delay=settings.BOOTSTRAP_DELAY_SECONDS,
    )
    bootstrap_task = asyncio.create_task(bootstrap.run())

    print(HELP)
    try:
        while True:
            line = await asyncio.to_thread(input, "> ")
            if not line.strip():
                continue
            try:
                if not await handle_command(line, aggregator, trigger, copywriter, api):
                    break
            except (DealsFinderError, ValueError) as e:
                logger.error(f"❌ Command failed: {e}")
    finally:
        bootstrap.cancel()
        bootstrap_task.cancel()
        try:
            await bootstrap_task
        except asyncio.CancelledError:
            pass
        aggregator.dispose()
        logger.info("Deals Finder stopped")


if __name__ == "__main__":
    try:
        asyncio.run(run_finder())
    except (KeyboardInterrupt, EOFError):
        logger.info("Stopped by user.")

"""Entry point for the Lucky Table Discord bot."""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Tuple

import discord
from discord.ext import commands

from .accounts import StoreUserRepository
from .analysis import WalletAnalyzer
from .baccarat import Side
from .blackjack import BlackjackGame, Phase
from .cards import Card
from .config import Settings
from .models import Rejection, Transaction
from .preferences import Preferences, PreferenceValue
from .roulette import BetType, BetValue, SpinResult
from .rules import get_rules
from .storage import SqliteStore
from .table import Table, TableManager

log = logging.getLogger("lucky-table")

CHIPS = "chips"

REJECTION_MESSAGES = {
    Rejection.INVALID_BET: "That is not a valid bet.",
    Rejection.INVALID_AMOUNT: "Amount must be a positive number of chips.",
    Rejection.INSUFFICIENT_FUNDS: "You don't have enough chips for this bet.",
    Rejection.NO_BETS: "Place at least one bet first.",
    Rejection.INVALID_STATE: "You can't do that right now.",
    Rejection.DOUBLE_NOT_ALLOWED: "You can only double on your first two cards.",
    Rejection.ALREADY_COLLECTED: "Daily bonus already collected today. Come back tomorrow!",
    Rejection.STORAGE_FAILURE: "Your wallet could not be saved. Nothing was changed.",
    Rejection.ROUND_IN_PROGRESS: "Finish your current round first.",
    Rejection.NOT_FOUND: "Not found.",
}


def describe_rejection(reason: Optional[Rejection]) -> str:
    if reason is None:
        return "Something went wrong."
    return REJECTION_MESSAGES[reason]


def parse_amount(arg: str, balance: int) -> int:
    """Turn ``100``, ``1,000``, ``all`` or ``half`` into a chip amount."""
    arg = arg.strip().lower()
    if arg in ("all", "max"):
        return balance
    if arg == "half":
        return balance // 2
    try:
        return int(arg.replace("_", "").replace(",", ""))
    except ValueError:
        raise ValueError(f"Not an amount: {arg}") from None


def parse_roulette_bet(args: Iterable[str], balance: int) -> Tuple[BetType, Optional[BetValue], int]:
    """Parse ``red 10`` or ``number 17 10`` into (type, value, amount)."""
    parts = [a for a in args if a.strip()]
    if not parts:
        raise ValueError("Missing bet type")
    try:
        bet_type = BetType(parts[0].lower())
    except ValueError:
        raise ValueError(f"Unknown bet type: {parts[0]}") from None

    if bet_type == BetType.NUMBER:
        if len(parts) != 3:
            raise ValueError("Usage: number <0-36> <amount>")
        try:
            value: Optional[BetValue] = int(parts[1])
        except ValueError:
            raise ValueError(f"Not a number: {parts[1]}") from None
        return bet_type, value, parse_amount(parts[2], balance)

    if len(parts) != 2:
        raise ValueError(f"Usage: {bet_type.value} <amount>")
    return bet_type, None, parse_amount(parts[1], balance)


def format_hand(cards: List[Card], hide_hole: bool = False) -> str:
    labels = [card.label for card in cards]
    if hide_hole and len(labels) > 1:
        labels[1] = "🂠"
    return " ".join(labels)


def render_blackjack(game: BlackjackGame) -> str:
    hide = game.phase == Phase.PLAYING
    lines = [
        f"Dealer: {format_hand(game.dealer_hand, hide_hole=hide)} ({game.dealer_score})",
        f"You: {format_hand(game.player_hand)} ({game.player_score})",
        f"Bet: {game.bet:,} {CHIPS}",
    ]
    if game.outcome:
        lines.append(f"**{game.outcome.message}** {game.outcome.payout:+,} {CHIPS}")
    elif game.phase == Phase.PLAYING:
        options = ["!hit", "!stand"]
        if game.can_double:
            options.append("!double")
        lines.append("Options: " + " / ".join(options))
    return "\n".join(lines)


def render_spin(result: SpinResult) -> str:
    lines = [f"The ball lands on **{result.number} ({result.color})**."]
    for bet, won in result.winning_bets:
        label = bet.value if bet.type == BetType.NUMBER else bet.type.value
        lines.append(f"✔ {label}: +{won:,}")
    for bet in result.losing_bets:
        label = bet.value if bet.type == BetType.NUMBER else bet.type.value
        lines.append(f"✘ {label}: -{bet.amount:,}")
    lines.append(f"Net: {result.net:+,} {CHIPS}")
    return "\n".join(lines)


PREFERENCE_NAMES = {
    "haptic": "haptic_enabled",
    "sound": "sound_enabled",
    "animations": "animations_enabled",
    "theme": "theme",
}
SWITCH_VALUES = {"on": True, "true": True, "yes": True, "off": False, "false": False, "no": False}


def parse_preference(key: str, raw: str) -> Tuple[str, PreferenceValue]:
    """Turn ``sound off`` or ``theme light`` into a preference name and value."""
    name = PREFERENCE_NAMES.get(key.lower())
    if name is None:
        raise ValueError(f"Unknown setting: {key}. Choose from {', '.join(PREFERENCE_NAMES)}")
    if name == "theme":
        return name, raw.lower()
    try:
        return name, SWITCH_VALUES[raw.lower()]
    except KeyError:
        raise ValueError(f"Use on or off for {key}") from None


def format_preferences(preferences: Preferences) -> str:
    lines = []
    for short, name in PREFERENCE_NAMES.items():
        value = getattr(preferences, name)
        if isinstance(value, bool):
            value = "on" if value else "off"
        lines.append(f"{short}: {value}")
    return "\n".join(lines)


def format_transaction(entry: Transaction) -> str:
    sign = "+" if entry.is_credit else "-"
    game = f" [{entry.game}]" if entry.game else ""
    return f"{entry.timestamp[:16].replace('T', ' ')} {sign}{entry.amount:,} {entry.description}{game}"


class Casino(commands.Cog):
    """Blackjack, roulette and baccarat played for chips."""

    def __init__(self, bot: "LuckyTable") -> None:
        self.bot = bot

    def table(self, ctx: commands.Context) -> Table:
        return self.bot.tables.table_for(ctx.author.id)

    async def reveal(self, table: Table) -> None:
        # Settlement has already happened; this only paces the message
        if table.preferences.current.animations_enabled:
            await asyncio.sleep(self.bot.settings.reveal_delay)

    async def send_blackjack(self, ctx: commands.Context, table: Table) -> None:
        if table.blackjack.phase == Phase.FINISHED:
            await self.reveal(table)
        await ctx.send(f"{render_blackjack(table.blackjack)}\nBalance: {table.wallet.balance:,} {CHIPS}")

    async def send_blackjack_rejection(self, ctx: commands.Context, table: Table, reason: Optional[Rejection]) -> None:
        message = describe_rejection(reason)
        if table.blackjack.awaiting_settlement:
            message += " Use !stand to settle the hand again."
        await ctx.send(message)

    @commands.command(name="bj", help="Start a blackjack hand. Example: !bj 50")
    async def blackjack(self, ctx: commands.Context, amount: str) -> None:
        table = self.table(ctx)
        try:
            bet = parse_amount(amount, table.wallet.balance)
        except ValueError as exc:
            await ctx.send(str(exc))
            return
        result = table.start_blackjack(bet)
        if not result:
            await self.send_blackjack_rejection(ctx, table, result.reason)
            return
        await self.send_blackjack(ctx, table)

    @commands.command(name="hit")
    async def hit(self, ctx: commands.Context) -> None:
        table = self.table(ctx)
        result = table.hit()
        if not result:
            await self.send_blackjack_rejection(ctx, table, result.reason)
            return
        await self.send_blackjack(ctx, table)

    @commands.command(name="stand")
    async def stand(self, ctx: commands.Context) -> None:
        table = self.table(ctx)
        result = table.stand()
        if not result:
            await self.send_blackjack_rejection(ctx, table, result.reason)
            return
        await self.send_blackjack(ctx, table)

    @commands.command(name="double")
    async def double(self, ctx: commands.Context) -> None:
        table = self.table(ctx)
        result = table.double()
        if not result:
            await self.send_blackjack_rejection(ctx, table, result.reason)
            return
        await self.send_blackjack(ctx, table)

    @commands.command(name="rbet", help="Roulette bet: !rbet red 10, !rbet number 17 5")
    async def roulette_bet(self, ctx: commands.Context, *args: str) -> None:
        table = self.table(ctx)
        try:
            bet_type, value, amount = parse_roulette_bet(args, table.wallet.balance)
        except ValueError as exc:
            await ctx.send(str(exc))
            return
        result = table.place_roulette_bet(bet_type, value, amount)
        if not result:
            await ctx.send(describe_rejection(result.reason))
            return
        await ctx.send(f"Bet placed. Total on the table: {table.roulette.total_bet:,} {CHIPS}. Use !spin when ready.")

    @commands.command(name="spin")
    async def spin(self, ctx: commands.Context) -> None:
        table = self.table(ctx)
        result, outcome = table.spin()
        if not result or outcome is None:
            await ctx.send(describe_rejection(result.reason))
            return
        await ctx.send("The wheel is spinning...")
        await self.reveal(table)
        await ctx.send(f"{render_spin(outcome)}\nBalance: {table.wallet.balance:,} {CHIPS}")

    @commands.command(name="bbet", help="Baccarat bet: !bbet banker 20")
    async def baccarat_bet(self, ctx: commands.Context, side: str, amount: str) -> None:
        table = self.table(ctx)
        try:
            chosen = Side(side.lower())
            chips = parse_amount(amount, table.wallet.balance)
        except ValueError:
            await ctx.send("Usage: !bbet <player|banker|tie> <amount>")
            return
        result = table.place_baccarat_bet(chosen, chips)
        if not result:
            await ctx.send(describe_rejection(result.reason))
            return
        bets = ", ".join(f"{s.value} {a:,}" for s, a in table.baccarat.bets.items())
        await ctx.send(f"Bets: {bets}. Use !deal when ready.")

    @commands.command(name="deal")
    async def deal(self, ctx: commands.Context) -> None:
        table = self.table(ctx)
        result = table.deal_baccarat()
        if not result:
            await ctx.send(describe_rejection(result.reason))
            return
        baccarat = table.baccarat
        outcome = baccarat.result
        await ctx.send("Dealing...")
        await self.reveal(table)
        await ctx.send(
            f"Player: {format_hand(baccarat.player_hand)} ({outcome.player_score})\n"
            f"Banker: {format_hand(baccarat.banker_hand)} ({outcome.banker_score})\n"
            f"**{outcome.winner.value.title()} wins** - net {outcome.net:+,} {CHIPS}\n"
            f"Balance: {table.wallet.balance:,} {CHIPS}"
        )

    @commands.command(name="clearbets")
    async def clear_bets(self, ctx: commands.Context) -> None:
        self.table(ctx).clear_bets()
        await ctx.send("Bets cleared.")

    @commands.command(name="balance")
    async def balance(self, ctx: commands.Context) -> None:
        wallet = self.table(ctx).wallet
        bonus = "collected" if wallet.daily_bonus_collected else "available (!bonus)"
        await ctx.send(f"Balance: {wallet.balance:,} {CHIPS}. Daily bonus: {bonus}.")

    @commands.command(name="bonus")
    async def bonus(self, ctx: commands.Context) -> None:
        wallet = self.table(ctx).wallet
        result = wallet.collect_daily_bonus()
        if not result:
            await ctx.send(describe_rejection(result.reason))
            return
        await ctx.send(f"+{wallet.daily_bonus:,} {CHIPS}! Balance: {result.balance:,} {CHIPS}")

    @commands.command(name="history")
    async def history(self, ctx: commands.Context, count: int = 5) -> None:
        entries = self.table(ctx).wallet.transactions[: max(1, min(count, 20))]
        await ctx.send("\n".join(format_transaction(e) for e in entries) or "No transactions yet.")

    @commands.command(name="stats")
    async def stats(self, ctx: commands.Context) -> None:
        await ctx.send(WalletAnalyzer(self.table(ctx).wallet.transactions).report())

    @commands.command(name="rules")
    async def rules(self, ctx: commands.Context, game: str) -> None:
        rules = get_rules(game)
        if rules is None:
            await ctx.send("Game rules not found")
            return
        body = "\n".join(f"{i}. {rule}" for i, rule in enumerate(rules.rules, start=1))
        tips = "\n".join(f"• {tip}" for tip in rules.strategy)
        await ctx.send(f"**{rules.title} Rules**\n{rules.objective}\n{body}\n\n**Strategy Tips**\n{tips}")

    @commands.command(name="resetwallet")
    async def reset_wallet(self, ctx: commands.Context) -> None:
        result = self.table(ctx).reset_wallet()
        if not result:
            await ctx.send(describe_rejection(result.reason))
            return
        await ctx.send(f"Wallet reset. Balance: {result.balance:,} {CHIPS}")

    @commands.command(name="settings", help="Show or change settings: !settings sound off, !settings theme light")
    async def settings(self, ctx: commands.Context, key: Optional[str] = None, value: Optional[str] = None) -> None:
        preferences = self.table(ctx).preferences
        if key is None:
            await ctx.send(format_preferences(preferences.current))
            return
        if value is None:
            await ctx.send("Usage: !settings <setting> <value>")
            return
        try:
            name, parsed = parse_preference(key, value)
            saved = preferences.update(name, parsed)
        except ValueError as exc:
            await ctx.send(str(exc))
            return
        if not saved:
            await ctx.send("Your settings could not be saved.")
            return
        await ctx.send(format_preferences(preferences.current))

    @commands.command(name="signup", help="Register an account (DM only): !signup <email> <username> <password>")
    @commands.dm_only()
    async def signup(self, ctx: commands.Context, email: str, username: str, password: str) -> None:
        table = self.table(ctx)
        result = table.signup(email, username, password)
        if not result.ok:
            await ctx.send(result.reason)
            return
        await ctx.send(f"Welcome, {result.user.username}! Your wallet starts at {table.wallet.balance:,} {CHIPS}.")

    @commands.command(name="login", help="Log in (DM only): !login <email> <password>")
    @commands.dm_only()
    async def login(self, ctx: commands.Context, email: str, password: str) -> None:
        result = self.table(ctx).accounts.login(email, password)
        if not result.ok:
            await ctx.send(result.reason)
            return
        await ctx.send(f"Logged in as {result.user.username}.")

    @commands.command(name="logout")
    async def logout(self, ctx: commands.Context) -> None:
        result = self.table(ctx).accounts.logout()
        await ctx.send("Logged out." if result.ok else result.reason)

    @commands.command(name="password", help="Change your password (DM only): !password <current> <new>")
    @commands.dm_only()
    async def password(self, ctx: commands.Context, current: str, new: str) -> None:
        result = self.table(ctx).accounts.change_password(current, new)
        await ctx.send("Password changed." if result.ok else result.reason)

    @commands.command(name="forgotpassword")
    async def forgot_password(self, ctx: commands.Context, email: str) -> None:
        self.table(ctx).accounts.forgot_password(email)
        await ctx.send("If that account exists, reset instructions are on their way.")

    @commands.command(name="profile")
    async def profile(self, ctx: commands.Context) -> None:
        user = self.table(ctx).accounts.user
        if user is None:
            await ctx.send("Not logged in. Use !signup or !login in a direct message.")
            return
        await ctx.send(f"{user.username} ({user.email}), member since {user.created_at[:10]}")

    async def cog_command_error(self, ctx: commands.Context, error: commands.CommandError) -> None:
        if isinstance(error, commands.PrivateMessageOnly):
            await ctx.send("Send that command to me in a direct message.")
        elif isinstance(error, (commands.MissingRequiredArgument, commands.BadArgument)):
            await ctx.send(f"Usage: !{ctx.command.qualified_name} {ctx.command.signature}")
        else:
            log.error("Command %s failed", ctx.command, exc_info=error)


class LuckyTable(commands.Bot):
    def __init__(self, settings: Settings) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(command_prefix="!", intents=intents)

        self.settings = settings
        self.storage = SqliteStore(settings.database_path)
        self.tables = TableManager(
            lambda player_id: self.storage.scoped(f"player:{player_id}"),
            starting_balance=settings.starting_balance,
            daily_bonus=settings.daily_bonus,
            history_limit=settings.history_limit,
            strict=settings.strict_ledger,
            users=StoreUserRepository(self.storage.scoped("accounts")),
        )

    async def setup_hook(self) -> None:
        await self.add_cog(Casino(self))
        log.info("Lucky Table ready to deal")

    async def on_ready(self) -> None:
        log.info("Logged in as %s", self.user)

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return

        if self.settings.guild_whitelist and message.guild and str(message.guild.id) not in self.settings.guild_whitelist:
            return

        await self.process_commands(message)


def main() -> None:
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)
    bot = LuckyTable(settings)
    bot.run(settings.token, log_handler=None)


if __name__ == "__main__":
    main()

from hitrate.settlement.market_data import DailyBar, lookup_daily_bar
from hitrate.settlement.settler import OutcomeSettler, SettlementResult

__all__ = [
    "DailyBar",
    "OutcomeSettler",
    "SettlementResult",
    "lookup_daily_bar",
]

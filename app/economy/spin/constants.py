from app.economy.spin.types import SpinOutcome, SpinPrize

DEFAULT_SPIN_PRIZES: tuple[SpinPrize, ...] = (
    SpinPrize(points=0, weight=40, message="Try Again Tomorrow!", outcome=SpinOutcome.TRY_AGAIN),
    SpinPrize(points=10, weight=25, message="You won 10 points!"),
    SpinPrize(points=25, weight=20, message="You won 25 points!"),
    SpinPrize(points=50, weight=10, message="You won 50 points!"),
    SpinPrize(points=100, weight=4, message="You won 100 points!"),
    SpinPrize(points=250, weight=1, message="JACKPOT! You won 250 points!"),
)

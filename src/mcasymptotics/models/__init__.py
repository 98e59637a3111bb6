from mcasymptotics.models.ols import OLS, fit_ols

__all__ = ["OLS", "fit_ols"]

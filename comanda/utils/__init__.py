from comanda.utils.formatting import format_price

__all__ = ['format_price']

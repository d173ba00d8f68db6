from comanda.connectors.mercadopago_connector import MercadoPagoConnector

__all__ = ['MercadoPagoConnector']

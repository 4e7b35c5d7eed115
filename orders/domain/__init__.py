from orders.domain.order import Order, OrderItem, OrderStatus, OrderType, UserDetails

__all__ = ["Order", "OrderItem", "OrderStatus", "OrderType", "UserDetails"]

from .models import Order


def orders_visible_to(user):
    """Orders a user may read: their own as brand or creator, assigned ones for agents"""
    orders = Order.objects.select_related('package', 'brand__user', 'creator__user')
    if user.is_super_admin:
        return orders
    if user.is_agent:
        return orders.filter(ticket__agent=user)
    if user.is_brand:
        return orders.filter(brand__user=user)
    if user.is_creator:
        return orders.filter(creator__user=user)
    return orders.none()

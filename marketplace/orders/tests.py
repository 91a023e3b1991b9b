"""
Test suite for Orders module
Tests: cart operations, checkout (duplicates, merging, atomicity), order status machine and order endpoints
"""
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status

from marketplace.core.models import AuditLog
from marketplace.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from marketplace.orders.checkout import checkout, merge_lines, CheckoutError, DuplicateOrderError, PackageUnavailable
from marketplace.orders.lifecycle import (
    apply_transition, allowed_actions, InvalidTransition, TransitionForbidden,
    TransitionPayloadError, REJECTION_MESSAGES
)
from marketplace.orders.models import CartItem, Order, OrderStatusHistory
from marketplace.support.models import Ticket, TicketMessage


class CartTests(TestCase):
    """Test the persisted cart"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.brand = TestDataFactory.create_brand()
        self.package = TestDataFactory.create_package(price=Decimal('1000.00'))
        self.client.authenticate_user(self.brand.user)

    def test_add_to_cart(self):
        """Adding a package creates a cart line"""
        response = self.client.post('/api/v1/cart/add/', {'packageId': self.package.id, 'quantity': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['item_count'], 1)
        self.assertEqual(response.data['total'], '2000.00')
        self.assertTrue(AuditLog.objects.filter(action='cart_add').exists())

    def test_add_merges_quantity(self):
        """Adding the same package again increases quantity"""
        self.client.post('/api/v1/cart/add/', {'packageId': self.package.id, 'quantity': 2}, format='json')
        response = self.client.post('/api/v1/cart/add/', {'packageId': self.package.id, 'quantity': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        item = CartItem.objects.get(user=self.brand.user, package=self.package)
        self.assertEqual(item.quantity, 5)

    def test_add_inactive_package(self):
        """Inactive packages cannot be added"""
        self.package.is_active = False
        self.package.save()
        response = self.client.post('/api/v1/cart/add/', {'packageId': self.package.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_creator_cannot_add(self):
        """Only brands have a cart"""
        self.client.authenticate_user(self.package.creator.user)
        response = self.client.post('/api/v1/cart/add/', {'packageId': self.package.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_and_remove_item(self):
        """Cart lines can be updated and removed"""
        item = TestDataFactory.create_cart_item(self.brand.user, self.package)
        response = self.client.put(f'/api/v1/cart/items/{item.id}/', {'quantity': 4, 'deliveryTime': 10}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        item.refresh_from_db()
        self.assertEqual(item.quantity, 4)
        self.assertEqual(item.delivery_time, 10)
        response = self.client.delete(f'/api/v1/cart/items/{item.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(CartItem.objects.filter(pk=item.id).exists())

    def test_other_users_item_not_found(self):
        """Cart lines of other users are invisible"""
        other = TestDataFactory.create_brand()
        item = TestDataFactory.create_cart_item(other.user, self.package)
        response = self.client.delete(f'/api/v1/cart/items/{item.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_quantity_bounds(self):
        """Quantity must be between 1 and 100"""
        response = self.client.post('/api/v1/cart/add/', {'packageId': self.package.id, 'quantity': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/cart/add/', {'packageId': self.package.id, 'quantity': 101}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_clear(self):
        """Clearing empties the cart"""
        TestDataFactory.create_cart_item(self.brand.user, self.package)
        response = self.client.delete('/api/v1/cart/clear/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['item_count'], 0)
        self.assertEqual(response.data['total'], '0.00')

    def test_sync_replaces_cart(self):
        """Sync replaces the cart and reports unavailable packages"""
        TestDataFactory.create_cart_item(self.brand.user, self.package)
        other = TestDataFactory.create_package()
        response = self.client.post('/api/v1/cart/sync/', {'items': [
            {'packageId': other.id, 'quantity': 1},
            {'packageId': other.id, 'quantity': 2},
            {'packageId': 999999, 'quantity': 1},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['skipped_package_ids'], [999999])
        items = CartItem.objects.filter(user=self.brand.user)
        self.assertEqual(items.count(), 1)
        self.assertEqual(items.get().quantity, 3)


class MergeLinesTests(TestCase):
    """Test checkout line merging"""

    def test_merges_duplicate_packages(self):
        """Lines for the same package are summed; the first line's details win"""
        lines = merge_lines([
            {'package_id': 1, 'quantity': 1, 'additional_instructions': 'first'},
            {'package_id': 2, 'quantity': 1},
            {'package_id': 1, 'quantity': 2, 'additional_instructions': 'second'},
        ])
        self.assertEqual(len(lines), 2)
        self.assertEqual(lines[0]['quantity'], 3)
        self.assertEqual(lines[0]['additional_instructions'], 'first')


class CheckoutTests(TestCase):
    """Test checkout"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.brand = TestDataFactory.create_brand()
        self.creator = TestDataFactory.create_creator()
        self.package = TestDataFactory.create_package(creator=self.creator, price=Decimal('2500.00'), delivery_days=7)
        self.agent_a = TestDataFactory.create_agent()
        self.agent_b = TestDataFactory.create_agent()
        self.client.authenticate_user(self.brand.user)

    def test_checkout_creates_order_and_ticket(self):
        """Checkout creates an order with a ticket and a summary message"""
        response = self.client.post('/api/v1/orders/checkout/', {
            'cartItems': [{'packageId': self.package.id, 'quantity': 2, 'additionalInstructions': 'Festive look'}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        order = Order.objects.get()
        self.assertEqual(order.total_amount, Decimal('5000.00'))
        self.assertEqual(order.currency, 'INR')
        self.assertEqual(order.delivery_time, 7)
        self.assertEqual(order.status, 'pending')
        self.assertTrue(order.order_number.startswith('ORD-'))
        ticket = Ticket.objects.get(order=order)
        self.assertEqual(ticket.agent, self.agent_a)
        self.assertTrue(TicketMessage.objects.filter(ticket=ticket, sender_role='system').exists())
        self.assertEqual(response.data['orders'][0]['allowed_actions'], ['cancel'])

    def test_checkout_uses_stored_cart(self):
        """Without cartItems the persisted cart is bought and emptied"""
        TestDataFactory.create_cart_item(self.brand.user, self.package, quantity=3)
        response = self.client.post('/api/v1/orders/checkout/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Order.objects.get().quantity, 3)
        self.assertFalse(CartItem.objects.filter(user=self.brand.user).exists())

    def test_empty_cart(self):
        """Checking out nothing is a 400"""
        response = self.client.post('/api/v1/orders/checkout/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_duplicate_order_rejected(self):
        """A second order for the same package inside the window is a 409"""
        first = self.client.post('/api/v1/orders/checkout/', {'cartItems': [{'packageId': self.package.id}]}, format='json')
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        response = self.client.post('/api/v1/orders/checkout/', {'cartItems': [{'packageId': self.package.id}]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['existingOrderId'], first.data['orders'][0]['id'])
        self.assertEqual(Order.objects.count(), 1)

    def test_duplicate_allowed_after_window(self):
        """Orders older than the window do not block a new one"""
        order = TestDataFactory.create_order(brand=self.brand, package=self.package)
        order.order_date = timezone.now() - timedelta(minutes=10)
        order.save()
        response = self.client.post('/api/v1/orders/checkout/', {'cartItems': [{'packageId': self.package.id}]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_duplicate_allowed_when_previous_finished(self):
        """Cancelled orders do not block a new one"""
        TestDataFactory.create_order(brand=self.brand, package=self.package, status='cancelled')
        response = self.client.post('/api/v1/orders/checkout/', {'cartItems': [{'packageId': self.package.id}]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_checkout_is_all_or_nothing(self):
        """One unavailable package aborts the whole checkout"""
        inactive = TestDataFactory.create_package(creator=self.creator, is_active=False)
        response = self.client.post('/api/v1/orders/checkout/', {'cartItems': [
            {'packageId': self.package.id},
            {'packageId': inactive.id},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['packageId'], inactive.id)
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(Ticket.objects.count(), 0)

    def test_duplicate_lines_merged(self):
        """The same package twice in one request becomes one order"""
        response = self.client.post('/api/v1/orders/checkout/', {'cartItems': [
            {'packageId': self.package.id, 'quantity': 1},
            {'packageId': self.package.id, 'quantity': 2},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Order.objects.get().quantity, 3)

    def test_creator_cannot_checkout(self):
        """Checkout is brand only"""
        self.client.authenticate_user(self.creator.user)
        response = self.client.post('/api/v1/orders/checkout/', {'cartItems': [{'packageId': self.package.id}]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_brand_without_profile(self):
        """Brands must complete their profile first"""
        self.client.authenticate_user(TestDataFactory.create_user(user_type='brand'))
        response = self.client.post('/api/v1/orders/checkout/', {'cartItems': [{'packageId': self.package.id}]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_round_robin_assignment(self):
        """Consecutive orders rotate through agents and wrap around"""
        packages = [TestDataFactory.create_package(creator=self.creator) for _ in range(3)]
        orders = []
        for package in packages:
            orders.extend(checkout(self.brand.user, self.brand, [{'package_id': package.id}]))
        agents = [Ticket.objects.get(order=o).agent for o in orders]
        self.assertEqual(agents, [self.agent_a, self.agent_b, self.agent_a])

    def test_checkout_without_agents(self):
        """Without agents the ticket is created unassigned"""
        self.agent_a.delete()
        self.agent_b.delete()
        orders = checkout(self.brand.user, self.brand, [{'package_id': self.package.id}])
        self.assertIsNone(Ticket.objects.get(order=orders[0]).agent)

    def test_checkout_errors(self):
        """Checkout raises typed errors"""
        with self.assertRaises(CheckoutError):
            checkout(self.brand.user, self.brand, [])
        with self.assertRaises(PackageUnavailable):
            checkout(self.brand.user, self.brand, [{'package_id': 999999}])
        checkout(self.brand.user, self.brand, [{'package_id': self.package.id}])
        with self.assertRaises(DuplicateOrderError):
            checkout(self.brand.user, self.brand, [{'package_id': self.package.id}])

    @override_settings(MARKETPLACE={'CHECKOUT_DUPLICATE_WINDOW_SECONDS': 0})
    def test_window_setting(self):
        """A zero window disables duplicate detection"""
        checkout(self.brand.user, self.brand, [{'package_id': self.package.id}])
        checkout(self.brand.user, self.brand, [{'package_id': self.package.id}])
        self.assertEqual(Order.objects.count(), 2)


class LifecycleTests(TestCase):
    """Test the order status machine"""

    def setUp(self):
        self.brand = TestDataFactory.create_brand()
        self.creator = TestDataFactory.create_creator()
        self.package = TestDataFactory.create_package(creator=self.creator, price=Decimal('1000.00'), revisions=1)
        self.order = TestDataFactory.create_order(brand=self.brand, package=self.package)
        self.brand_user = self.brand.user
        self.creator_user = self.creator.user

    def test_full_flow(self):
        """pending -> accepted -> review -> revision -> review -> completed"""
        order = apply_transition(self.order, 'accept', self.creator_user)
        self.assertEqual(order.status, 'accepted')
        self.assertIsNotNone(order.accepted_at)
        order = apply_transition(order, 'submit', self.creator_user, {'deliverables': [{'url': 'https://x.test/1'}]})
        self.assertEqual(order.status, 'review')
        order = apply_transition(order, 'request_revision', self.brand_user, {'requirements': 'Brighter colours'})
        self.assertEqual(order.status, 'revision')
        self.assertEqual(order.revision_count, 1)
        order = apply_transition(order, 'submit', self.creator_user, {'deliverables': [{'url': 'https://x.test/2'}]})
        order = apply_transition(order, 'approve', self.brand_user)
        self.assertEqual(order.status, 'completed')
        self.assertIsNotNone(order.completed_at)
        self.creator.refresh_from_db()
        self.assertEqual(self.creator.total_collaborations, 1)
        self.assertEqual(OrderStatusHistory.objects.filter(order=order).count(), 5)

    def test_wrong_actor(self):
        """Brands cannot accept and creators cannot approve"""
        with self.assertRaises(TransitionForbidden):
            apply_transition(self.order, 'accept', self.brand_user)
        other_creator = TestDataFactory.create_creator()
        with self.assertRaises(TransitionForbidden):
            apply_transition(self.order, 'accept', other_creator.user)

    def test_invalid_source_status(self):
        """Approving a pending order is an invalid transition"""
        with self.assertRaises(InvalidTransition):
            apply_transition(self.order, 'approve', self.brand_user)
        with self.assertRaises(InvalidTransition):
            apply_transition(self.order, 'teleport', self.brand_user)

    def test_reject_uses_default_message(self):
        """Rejecting without a message picks a courteous default"""
        order = apply_transition(self.order, 'reject', self.creator_user)
        self.assertEqual(order.status, 'cancelled')
        self.assertIn(order.rejection_message, REJECTION_MESSAGES)

    def test_reject_with_message(self):
        """A given rejection message is kept"""
        order = apply_transition(self.order, 'reject', self.creator_user, {'rejection_message': 'Booked out'})
        self.assertEqual(order.rejection_message, 'Booked out')

    def test_brand_cancel_only_pending(self):
        """Brands can cancel pending orders only"""
        apply_transition(self.order, 'accept', self.creator_user)
        with self.assertRaises(InvalidTransition):
            apply_transition(self.order, 'cancel', self.brand_user)

    def test_submit_requires_deliverables(self):
        """Submissions need at least one deliverable"""
        apply_transition(self.order, 'accept', self.creator_user)
        with self.assertRaises(TransitionPayloadError):
            apply_transition(self.order, 'submit', self.creator_user, {'deliverables': []})

    def test_revision_limit(self):
        """Revisions beyond the package allowance are refused"""
        order = apply_transition(self.order, 'accept', self.creator_user)
        order = apply_transition(order, 'submit', self.creator_user, {'deliverables': ['v1']})
        order = apply_transition(order, 'request_revision', self.brand_user, {'requirements': 'again'})
        order = apply_transition(order, 'submit', self.creator_user, {'deliverables': ['v2']})
        with self.assertRaises(InvalidTransition):
            apply_transition(order, 'request_revision', self.brand_user, {'requirements': 'once more'})

    def _to_revision(self):
        order = apply_transition(self.order, 'accept', self.creator_user)
        order = apply_transition(order, 'submit', self.creator_user, {'deliverables': ['v1']})
        return apply_transition(order, 'request_revision', self.brand_user, {'requirements': 'longer video'})

    def test_price_revision_approved(self):
        """An approved price revision adds to the total and returns to revision"""
        order = self._to_revision()
        order = apply_transition(order, 'request_price_revision', self.creator_user, {'amount': '250.50', 'reason': 'Longer edit'})
        self.assertEqual(order.status, 'price_revision_pending')
        self.assertEqual(order.price_revision_amount, Decimal('250.50'))
        order = apply_transition(order, 'approve_price_revision', self.brand_user)
        self.assertEqual(order.status, 'revision')
        self.assertEqual(order.total_amount, Decimal('1250.50'))
        self.assertIsNone(order.price_revision_amount)

    def test_price_revision_declined(self):
        """A declined price revision keeps the total and returns to revision"""
        order = self._to_revision()
        order = apply_transition(order, 'request_price_revision', self.creator_user, {'amount': '100', 'reason': 'Extra cut'})
        order = apply_transition(order, 'decline_price_revision', self.brand_user)
        self.assertEqual(order.status, 'revision')
        self.assertEqual(order.total_amount, Decimal('1000.00'))

    def test_price_revision_validation(self):
        """Amounts must be positive and a reason given"""
        order = self._to_revision()
        with self.assertRaises(TransitionPayloadError):
            apply_transition(order, 'request_price_revision', self.creator_user, {'amount': '0', 'reason': 'x'})
        with self.assertRaises(TransitionPayloadError):
            apply_transition(order, 'request_price_revision', self.creator_user, {'amount': 'abc', 'reason': 'x'})
        with self.assertRaises(TransitionPayloadError):
            apply_transition(order, 'request_price_revision', self.creator_user, {'amount': '10'})

    def test_transition_posts_system_message(self):
        """Each transition is announced on the order's ticket"""
        apply_transition(self.order, 'accept', self.creator_user)
        ticket = Ticket.objects.get(order=self.order)
        self.assertTrue(ticket.messages.filter(sender_role='system', message_text__icontains='accepted').exists())
        self.assertTrue(AuditLog.objects.filter(action='order_transition').exists())

    def test_allowed_actions(self):
        """Allowed actions depend on status and role"""
        self.assertEqual(allowed_actions(self.order, self.creator_user), ['accept', 'reject'])
        self.assertEqual(allowed_actions(self.order, self.brand_user), ['cancel'])


class OrderAPITests(TestCase):
    """Test order endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.brand = TestDataFactory.create_brand()
        self.creator = TestDataFactory.create_creator()
        self.agent = TestDataFactory.create_agent()
        self.package = TestDataFactory.create_package(creator=self.creator, price=Decimal('1000.00'))
        self.order = TestDataFactory.create_order(brand=self.brand, package=self.package, agent=self.agent)

    def test_list_scoped_to_role(self):
        """Brands, creators and agents see their own orders; others see none"""
        for user in (self.brand.user, self.creator.user, self.agent):
            self.client.authenticate_user(user)
            response = self.client.get('/api/v1/orders/')
            self.assertEqual([o['id'] for o in response.data], [self.order.id])
        self.client.authenticate_user(TestDataFactory.create_brand().user)
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(response.data, [])

    def test_list_status_filter(self):
        """The status parameter filters orders"""
        self.client.authenticate_user(self.brand.user)
        response = self.client.get('/api/v1/orders/', {'status': 'completed'})
        self.assertEqual(response.data, [])
        response = self.client.get('/api/v1/orders/', {'status': 'pending,accepted'})
        self.assertEqual(len(response.data), 1)

    def test_detail_hidden_from_others(self):
        """Other brands get 404"""
        self.client.authenticate_user(TestDataFactory.create_brand().user)
        response = self.client.get(f'/api/v1/orders/{self.order.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_accept_endpoint(self):
        """Creators accept with PUT"""
        self.client.authenticate_user(self.creator.user)
        response = self.client.put(f'/api/v1/orders/{self.order.id}/accept/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'accepted')
        self.assertEqual(response.data['allowed_actions'], ['submit'])

    def test_accept_by_brand_forbidden(self):
        """Brands get 403 on creator actions"""
        self.client.authenticate_user(self.brand.user)
        response = self.client.put(f'/api/v1/orders/{self.order.id}/accept/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_invalid_transition_conflict(self):
        """Invalid transitions return 409"""
        self.client.authenticate_user(self.brand.user)
        response = self.client.post(f'/api/v1/orders/{self.order.id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_reject_endpoint(self):
        """Creators reject with a message"""
        self.client.authenticate_user(self.creator.user)
        response = self.client.put(f'/api/v1/orders/{self.order.id}/reject/', {'rejectionMessage': 'Busy'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['rejection_message'], 'Busy')

    def test_deliverables_validation(self):
        """Deliverables must be a non-empty list"""
        apply_transition(self.order, 'accept', self.creator.user)
        self.client.authenticate_user(self.creator.user)
        response = self.client.post(f'/api/v1/orders/{self.order.id}/deliverables/', {'deliverables': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(f'/api/v1/orders/{self.order.id}/deliverables/', {
            'deliverables': [{'url': 'https://cdn.example.com/v1.mp4', 'type': 'video'}],
            'note': 'First cut',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'review')

    def test_price_revision_endpoints(self):
        """Price revision request and approval through the API"""
        apply_transition(self.order, 'accept', self.creator.user)
        apply_transition(self.order, 'submit', self.creator.user, {'deliverables': ['v1']})
        apply_transition(self.order, 'request_revision', self.brand.user, {'requirements': 'Add subtitles'})
        self.client.authenticate_user(self.creator.user)
        response = self.client.post(f'/api/v1/orders/{self.order.id}/price-revision/', {'amount': '0', 'reason': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(f'/api/v1/orders/{self.order.id}/price-revision/', {'amount': '300.00', 'reason': 'Subtitles'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.client.authenticate_user(self.brand.user)
        response = self.client.post(f'/api/v1/orders/{self.order.id}/price-revision/approve/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_amount'], '1300.00')

    def test_history(self):
        """History lists transitions in order"""
        apply_transition(self.order, 'accept', self.creator.user)
        self.client.authenticate_user(self.brand.user)
        response = self.client.get(f'/api/v1/orders/{self.order.id}/history/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['from_status'], 'pending')
        self.assertEqual(response.data[0]['to_status'], 'accepted')

    def test_chat_shows_own_channel(self):
        """The order chat shows the caller's channel plus system messages"""
        ticket = Ticket.objects.get(order=self.order)
        TicketMessage.objects.create(ticket=ticket, sender=self.brand.user, sender_role='brand', channel_type='brand_agent', message_text='Hello')
        TicketMessage.objects.create(ticket=ticket, sender=self.creator.user, sender_role='creator', channel_type='creator_agent', message_text='Hi')
        TicketMessage.objects.create(ticket=ticket, sender_role='system', message_type='system', message_text='Order placed')
        self.client.authenticate_user(self.brand.user)
        response = self.client.get(f'/api/v1/orders/{self.order.id}/chat/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role'], 'brand')
        self.assertEqual([m['message_text'] for m in response.data['messages']], ['Hello', 'Order placed'])

    def test_chat_disabled_then_enabled(self):
        """Chat is refused while disabled and available after enabling"""
        self.order.chat_enabled = False
        self.order.save()
        self.client.authenticate_user(self.brand.user)
        response = self.client.get(f'/api/v1/orders/{self.order.id}/chat/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.post(f'/api/v1/orders/{self.order.id}/enable-chat/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.get(f'/api/v1/orders/{self.order.id}/chat/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_enable_chat_creates_missing_ticket(self):
        """Enabling chat on an order without a ticket opens one"""
        order = TestDataFactory.create_order(brand=self.brand, package=TestDataFactory.create_package(creator=self.creator), with_ticket=False)
        self.client.authenticate_user(self.brand.user)
        response = self.client.post(f'/api/v1/orders/{order.id}/enable-chat/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(Ticket.objects.filter(order=order).exists())

    def test_only_brand_enables_chat(self):
        """Creators and agents cannot re-enable a chat the brand turned off"""
        self.order.chat_enabled = False
        self.order.save()
        for user in (self.creator.user, self.agent):
            self.client.authenticate_user(user)
            response = self.client.post(f'/api/v1/orders/{self.order.id}/enable-chat/')
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.order.refresh_from_db()
        self.assertFalse(self.order.chat_enabled)

"""
Test suite for Support module
Tests: ticket visibility, ticket chat messages, agent management, chat tokens and message feed reconciliation
"""
from datetime import datetime, timedelta, timezone as dt_timezone
from unittest.mock import MagicMock, patch

import jwt
import requests
from django.db import IntegrityError, transaction
from django.test import TestCase, SimpleTestCase, override_settings
from rest_framework import status

from marketplace.core.models import AuditLog
from marketplace.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from marketplace.support.models import Ticket, TicketMessage
from marketplace.support.services import next_agent, post_message
from marketplace.support.stream import create_user_token
from marketplace.support.sync import ChatMessage, MessageReconciler, TicketPoller


class NextAgentTests(TestCase):
    """Test round-robin agent selection"""

    def test_no_agents(self):
        """Without active agents nobody is picked"""
        TestDataFactory.create_agent(status='suspended')
        self.assertIsNone(next_agent())

    def test_skips_inactive_and_wraps(self):
        """Inactive agents are skipped and the rotation wraps"""
        first = TestDataFactory.create_agent()
        TestDataFactory.create_agent(status='suspended')
        third = TestDataFactory.create_agent()
        self.assertEqual(next_agent(), first)
        TestDataFactory.create_order(agent=first)
        self.assertEqual(next_agent(), third)
        TestDataFactory.create_order(agent=third)
        self.assertEqual(next_agent(), first)

    def test_super_admins_not_assigned(self):
        """Super admins do not receive tickets"""
        TestDataFactory.create_agent(user_type='super_admin')
        self.assertIsNone(next_agent())

    def test_agent_rows_locked(self):
        """Agent rows are locked while the next agent is chosen"""
        agents = MagicMock()
        agents.select_for_update.return_value = []
        with patch('marketplace.support.services.assignable_agents', return_value=agents):
            self.assertIsNone(next_agent())
        agents.select_for_update.assert_called_once_with()


class TicketAPITests(TestCase):
    """Test ticket endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.agent = TestDataFactory.create_agent()
        self.other_agent = TestDataFactory.create_agent()
        self.super_admin = TestDataFactory.create_agent(user_type='super_admin')
        self.brand = TestDataFactory.create_brand()
        self.order = TestDataFactory.create_order(brand=self.brand, agent=self.agent)
        self.ticket = Ticket.objects.get(order=self.order)
        TestDataFactory.create_order(agent=self.other_agent)

    def test_agent_sees_assigned_tickets(self):
        """Agents list only tickets assigned to them"""
        self.client.authenticate_user(self.agent)
        response = self.client.get('/api/v1/tickets/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], self.ticket.id)

    def test_super_admin_sees_all(self):
        """Super admins list every ticket"""
        self.client.authenticate_user(self.super_admin)
        response = self.client.get('/api/v1/tickets/')
        self.assertEqual(response.data['count'], 2)

    def test_brand_sees_own_ticket(self):
        """Brands reach their order's ticket"""
        self.client.authenticate_user(self.brand.user)
        response = self.client.get(f'/api/v1/tickets/order/{self.order.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order_number'], self.order.order_number)
        response = self.client.get(f'/api/v1/tickets/{self.ticket.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_unrelated_agent_gets_404(self):
        """Tickets of other agents are hidden"""
        self.client.authenticate_user(self.other_agent)
        response = self.client.get(f'/api/v1/tickets/{self.ticket.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_status(self):
        """Resolving sets resolved_at and posts a system message"""
        self.client.authenticate_user(self.agent)
        response = self.client.put(f'/api/v1/tickets/{self.ticket.id}/status/', {'status': 'resolved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.ticket.refresh_from_db()
        self.assertEqual(self.ticket.status, 'resolved')
        self.assertIsNotNone(self.ticket.resolved_at)
        self.assertTrue(self.ticket.messages.filter(sender_role='system').exists())
        self.assertTrue(AuditLog.objects.filter(action='ticket_status').exists())

        response = self.client.put(f'/api/v1/tickets/{self.ticket.id}/status/', {'status': 'open'}, format='json')
        self.ticket.refresh_from_db()
        self.assertIsNone(self.ticket.resolved_at)

    def test_brand_cannot_update_status(self):
        """Only agents change ticket status"""
        self.client.authenticate_user(self.brand.user)
        response = self.client.put(f'/api/v1/tickets/{self.ticket.id}/status/', {'status': 'closed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_reassign(self):
        """Super admins move tickets between agents"""
        self.client.authenticate_user(self.super_admin)
        response = self.client.put(f'/api/v1/tickets/{self.ticket.id}/reassign/', {'agentId': self.other_agent.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.ticket.refresh_from_db()
        self.assertEqual(self.ticket.agent, self.other_agent)

    def test_reassign_to_non_agent(self):
        """Reassigning to a brand is a 404"""
        self.client.authenticate_user(self.super_admin)
        response = self.client.put(f'/api/v1/tickets/{self.ticket.id}/reassign/', {'agentId': self.brand.user.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_agent_cannot_reassign(self):
        """Regular agents cannot reassign"""
        self.client.authenticate_user(self.agent)
        response = self.client.put(f'/api/v1/tickets/{self.ticket.id}/reassign/', {'agentId': self.other_agent.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class TicketMessageTests(TestCase):
    """Test ticket chat messages"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.agent = TestDataFactory.create_agent()
        self.brand = TestDataFactory.create_brand()
        self.creator = TestDataFactory.create_creator()
        package = TestDataFactory.create_package(creator=self.creator)
        self.order = TestDataFactory.create_order(brand=self.brand, package=package, agent=self.agent)
        self.ticket = Ticket.objects.get(order=self.order)
        self.url = f'/api/v1/tickets/{self.ticket.id}/messages/'

    def test_brand_message_goes_to_brand_channel(self):
        """Brand messages land on the brand channel"""
        self.client.authenticate_user(self.brand.user)
        response = self.client.post(self.url, {'message': 'When can we expect the draft?'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['channel_type'], 'brand_agent')
        self.assertEqual(response.data['sender_role'], 'brand')

    def test_client_message_id_is_idempotent(self):
        """Resending with the same clientMessageId returns the stored message"""
        self.client.authenticate_user(self.brand.user)
        payload = {'message': 'Hello', 'clientMessageId': 'local-1'}
        first = self.client.post(self.url, payload, format='json')
        second = self.client.post(self.url, payload, format='json')
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data['id'], second.data['id'])
        self.assertEqual(TicketMessage.objects.filter(ticket=self.ticket).count(), 1)

    def test_client_message_id_unique_per_sender(self):
        """The database refuses a second row with the same clientMessageId"""
        post_message(self.ticket, self.brand.user, 'brand', text='Hello', client_message_id='local-2')
        with self.assertRaises(IntegrityError), transaction.atomic():
            TicketMessage.objects.create(
                ticket=self.ticket, sender=self.brand.user, sender_role='brand',
                message_text='Hello', client_message_id='local-2',
            )
        post_message(self.ticket, self.brand.user, 'brand', text='One')
        post_message(self.ticket, self.brand.user, 'brand', text='Two')
        self.assertEqual(TicketMessage.objects.filter(sender=self.brand.user, client_message_id='').count(), 2)

    def test_concurrent_resend_returns_stored_message(self):
        """A resend that loses the insert race returns the stored message"""
        stored, _ = post_message(self.ticket, self.brand.user, 'brand', text='Hi', client_message_id='local-3')
        with patch('marketplace.support.services.find_client_message', side_effect=[None, stored]):
            message, created = post_message(
                self.ticket, self.brand.user, 'brand', text='Hi', client_message_id='local-3'
            )
        self.assertFalse(created)
        self.assertEqual(message.id, stored.id)
        self.assertEqual(TicketMessage.objects.filter(client_message_id='local-3').count(), 1)

    def test_empty_message_rejected(self):
        """Text messages need text and file messages need a URL"""
        self.client.authenticate_user(self.brand.user)
        response = self.client.post(self.url, {'message': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(self.url, {'messageType': 'file'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_agent_must_choose_channel(self):
        """Agents must say which party they are answering"""
        self.client.authenticate_user(self.agent)
        response = self.client.post(self.url, {'message': 'Hi'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(self.url, {'message': 'Hi', 'channelType': 'creator_agent'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['channel_type'], 'creator_agent')

    def test_agent_reply_moves_ticket_in_progress(self):
        """The first agent reply marks an open ticket in progress"""
        post_message(self.ticket, self.agent, 'agent', text='On it', channel_type='brand_agent')
        self.ticket.refresh_from_db()
        self.assertEqual(self.ticket.status, 'in_progress')

    def test_channels_are_separated(self):
        """Brands and creators read their own channel only; agents read both"""
        post_message(self.ticket, self.brand.user, 'brand', text='brand says')
        post_message(self.ticket, self.creator.user, 'creator', text='creator says')

        self.client.authenticate_user(self.brand.user)
        response = self.client.get(self.url)
        self.assertEqual([m['message_text'] for m in response.data['messages']], ['brand says'])

        self.client.authenticate_user(self.creator.user)
        response = self.client.get(self.url)
        self.assertEqual([m['message_text'] for m in response.data['messages']], ['creator says'])

        self.client.authenticate_user(self.agent)
        response = self.client.get(self.url)
        self.assertEqual(len(response.data['messages']), 2)
        response = self.client.get(self.url, {'channel': 'creator_agent'})
        self.assertEqual([m['message_text'] for m in response.data['messages']], ['creator says'])

    def test_after_parameter(self):
        """after returns only newer messages"""
        first, _ = post_message(self.ticket, self.brand.user, 'brand', text='one')
        post_message(self.ticket, self.brand.user, 'brand', text='two')
        self.client.authenticate_user(self.brand.user)
        response = self.client.get(self.url, {'after': first.id})
        self.assertEqual([m['message_text'] for m in response.data['messages']], ['two'])
        self.assertEqual(response.data['ticket_status'], 'open')
        response = self.client.get(self.url, {'after': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_chat_disabled_blocks_participants(self):
        """Brands cannot post while chat is disabled; agents still can"""
        self.order.chat_enabled = False
        self.order.save()
        self.client.authenticate_user(self.brand.user)
        response = self.client.post(self.url, {'message': 'Hi'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.client.authenticate_user(self.agent)
        response = self.client.post(self.url, {'message': 'Hi', 'channelType': 'brand_agent'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)


class AgentManagementTests(TestCase):
    """Test agent administration"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.super_admin = TestDataFactory.create_agent(user_type='super_admin')
        self.agent = TestDataFactory.create_agent(email='agent@test.com')
        self.client.authenticate_user(self.super_admin)

    def test_create_agent(self):
        """Super admins create active agents"""
        response = self.client.post('/api/v1/admin/agents/', {
            'email': 'New.Agent@Test.com',
            'name': 'New Agent',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['email'], 'new.agent@test.com')
        self.assertEqual(response.data['user_type'], 'admin')
        self.assertEqual(response.data['open_tickets'], 0)
        self.assertTrue(AuditLog.objects.filter(action='agent_create').exists())

    def test_create_duplicate_agent(self):
        """An existing email is a conflict"""
        response = self.client.post('/api/v1/admin/agents/', {'email': 'agent@test.com', 'name': 'Again'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_create_validation(self):
        """Short names and passwords are rejected"""
        response = self.client.post('/api/v1/admin/agents/', {'email': 'x@test.com', 'name': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/admin/agents/', {'email': 'x@test.com', 'name': 'Xavier', 'password': 'short'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_with_workload(self):
        """Agents are listed with their open ticket counts"""
        TestDataFactory.create_order(agent=self.agent)
        TestDataFactory.create_order(agent=self.agent)
        response = self.client.get('/api/v1/admin/agents/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['id'], self.agent.id)
        self.assertEqual(response.data[0]['open_tickets'], 2)

    def test_stats(self):
        """Stats count agents and tickets"""
        TestDataFactory.create_agent(status='suspended')
        TestDataFactory.create_order(agent=None)
        response = self.client.get('/api/v1/admin/agents/stats/')
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(response.data['active'], 1)
        self.assertEqual(response.data['suspended'], 1)
        self.assertEqual(response.data['unassigned_tickets'], 1)

    def test_delete_suspends(self):
        """Deleting an agent suspends the account"""
        self.agent.is_online = True
        self.agent.agent_status = 'available'
        self.agent.save()
        response = self.client.delete(f'/api/v1/admin/agents/{self.agent.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.agent.refresh_from_db()
        self.assertEqual(self.agent.status, 'suspended')
        self.assertFalse(self.agent.is_online)

    def test_update_account_status(self):
        """Super admins reactivate agents"""
        self.agent.status = 'suspended'
        self.agent.save()
        response = self.client.put(f'/api/v1/admin/agents/{self.agent.id}/status/', {'status': 'active'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'active')

    def test_agents_cannot_manage_agents(self):
        """Agent administration is restricted to super admins"""
        self.client.authenticate_user(self.agent)
        response = self.client.get('/api/v1/admin/agents/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_agent_sets_own_status(self):
        """Agents set their availability"""
        self.client.authenticate_user(self.agent)
        response = self.client.put('/api/v1/agents/me/status/', {'status': 'busy'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['agent_status'], 'busy')
        self.assertTrue(response.data['is_online'])
        response = self.client.put('/api/v1/agents/me/status/', {'status': 'offline'}, format='json')
        self.assertFalse(response.data['is_online'])


class ChatTokenTests(TestCase):
    """Test Stream Chat token issuing"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_brand().user
        self.client.authenticate_user(self.user)

    @override_settings(STREAM_API_KEY='', STREAM_API_SECRET='')
    def test_unconfigured(self):
        """Without credentials the endpoint is unavailable"""
        response = self.client.get('/api/v1/chat/token/')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)

    @override_settings(STREAM_API_KEY='key-123', STREAM_API_SECRET='secret-xyz')
    def test_token_issued(self):
        """The token is an HS256 JWT carrying the user id"""
        response = self.client.get('/api/v1/chat/token/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['apiKey'], 'key-123')
        self.assertEqual(response.data['userId'], str(self.user.id))
        claims = jwt.decode(response.data['token'], 'secret-xyz', algorithms=['HS256'])
        self.assertEqual(claims['user_id'], str(self.user.id))

    @override_settings(STREAM_API_SECRET='secret-xyz')
    def test_token_expiry(self):
        """Tokens can carry an expiry"""
        token = create_user_token('42', expires_in=timedelta(hours=1))
        claims = jwt.decode(token, 'secret-xyz', algorithms=['HS256'])
        self.assertEqual(claims['exp'] - claims['iat'], 3600)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def make_message(id, text, sender='Asha', seconds=0, status='sent'):
    created = datetime(2024, 5, 1, 10, 0, 0, tzinfo=dt_timezone.utc) + timedelta(seconds=seconds)
    return ChatMessage(id=str(id), text=text, sender_name=sender, created_at=created, status=status)


class MessageReconcilerTests(SimpleTestCase):
    """Test merging of polled message feeds"""

    def setUp(self):
        self.clock = FakeClock()
        self.reconciler = MessageReconciler(clock=self.clock)
        self.reconciler.load([make_message(1, 'hello', 'Ravi')])

    def test_new_messages_appended(self):
        """Unseen server messages are appended and returned"""
        added = self.reconciler.merge([make_message(1, 'hello', 'Ravi'), make_message(2, 'hi there', 'Ravi', 5)])
        self.assertEqual([m.id for m in added], ['2'])
        self.assertEqual([m.id for m in self.reconciler.messages], ['1', '2'])
        self.assertEqual(self.reconciler.last_message_id, '2')

    def test_unchanged_feed_is_noop(self):
        """A feed ending with the last seen id changes nothing"""
        self.assertEqual(self.reconciler.merge([make_message(1, 'hello', 'Ravi')]), [])
        self.assertEqual(self.reconciler.merge([]), [])

    def test_local_message_replaced_by_echo(self):
        """The server echo of a local message replaces it instead of duplicating"""
        self.reconciler.add_local(make_message('tmp-1', 'draft is ready', seconds=3, status='sending'))
        added = self.reconciler.merge([
            make_message(1, 'hello', 'Ravi'),
            make_message(7, 'draft is ready', seconds=4),
        ])
        self.assertEqual(added, [])
        self.assertEqual([m.id for m in self.reconciler.messages], ['1', '7'])
        self.assertEqual(self.reconciler.messages[-1].status, 'sent')

    def test_echo_outside_window_kept_separately(self):
        """Matching text far apart in time does not replace the local message"""
        self.reconciler.add_local(make_message('tmp-1', 'ok', seconds=0, status='sending'))
        self.clock.now += 60
        self.reconciler.merge([make_message(1, 'hello', 'Ravi'), make_message(9, 'ok', seconds=30)])
        ids = [m.id for m in self.reconciler.messages]
        self.assertIn('tmp-1', ids)

    def test_pending_expires(self):
        """Local messages are shielded only for a short time"""
        self.reconciler.add_local(make_message('tmp-2', 'thanks', status='sending'))
        self.assertTrue(self.reconciler.is_pending('tmp-2'))
        self.assertTrue(self.reconciler.is_pending('thanks-Asha'))
        self.clock.now += 6
        self.assertFalse(self.reconciler.is_pending('tmp-2'))

    def test_reconnect_unions_and_sorts(self):
        """Reconnect keeps every message once, ordered by time"""
        self.reconciler.add_local(make_message('tmp-3', 'late local', seconds=20, status='sending'))
        self.reconciler.reconnect([make_message(1, 'hello', 'Ravi'), make_message(5, 'middle', seconds=10)])
        self.assertEqual([m.id for m in self.reconciler.messages], ['1', '5', 'tmp-3'])
        self.assertEqual(self.reconciler.last_message_id, '5')


class TicketPollerTests(SimpleTestCase):
    """Test the polling client"""

    def make_session(self, payload=None, error=None):
        session = MagicMock()
        session.headers = {}
        if error is not None:
            session.get.side_effect = error
        else:
            session.get.return_value.json.return_value = payload
        return session

    def test_poll_merges_and_notifies(self):
        """New messages are merged and passed to the callback"""
        received = []
        session = self.make_session({'messages': [
            {'id': 3, 'message_text': 'Welcome', 'sender_name': 'System', 'sender_role': 'system',
             'created_at': '2024-05-01T10:00:00Z'},
        ]})
        poller = TicketPoller('http://api.test/', 12, 'tok', channel='brand_agent',
                              on_new=received.extend, session=session)
        added = poller.poll_once()

        self.assertEqual(session.headers['Authorization'], 'Bearer tok')
        session.get.assert_called_once_with(
            'http://api.test/api/v1/tickets/12/messages/',
            params={'channel': 'brand_agent'},
            timeout=10
        )
        self.assertEqual([m.text for m in added], ['Welcome'])
        self.assertEqual(received, added)

    def test_poll_error_logged(self):
        """Request failures are logged and return nothing"""
        session = self.make_session(error=requests.exceptions.ConnectionError('down'))
        poller = TicketPoller('http://api.test', 12, 'tok', session=session)
        with self.assertLogs('marketplace.support.sync', level='ERROR'):
            self.assertEqual(poller.poll_once(), [])

    def test_run_stops_after_max_polls(self):
        """run polls the requested number of times"""
        session = self.make_session({'messages': []})
        poller = TicketPoller('http://api.test', 12, 'tok', interval=0, session=session)
        poller.run(max_polls=3)
        self.assertEqual(session.get.call_count, 3)

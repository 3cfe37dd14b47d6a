from datetime import timedelta
from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from storefront.account_views import ACTION_HANDLERS, AccountAction
from storefront.models import CustomerProfile, Order, OrderItem

ACCOUNT_SETTINGS = {
    'ALLOWED_ORIGINS': ['https://www.example.com'],
    'CUSTOMER_ACCOUNTS_ENABLED': True,
    'ORDERS_ENABLED': True,
    'ORDERS_LIMIT': 20,
    'MIN_PASSWORD_LENGTH': 6,
}

URL = '/auth-proxy.php'


@override_settings(ACCOUNT_PROXY=ACCOUNT_SETTINGS)
class AccountProxyTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.user = User.objects.create_user(
            username='driver',
            email='driver@example.com',
            password='testpass123',
            first_name='Dana',
            last_name='Reyes',
        )
        CustomerProfile.objects.create(
            user=self.user,
            display_name='Dana R',
            role=CustomerProfile.ROLE_CUSTOMER,
            billing_address={'first_name': 'Dana', 'city': 'Austin', 'phone': '555-0100'},
            shipping_address={'city': 'Austin', 'postcode': '73301'},
        )

    def action(self, action, data=None, **extra):
        return self.client.post(f'{URL}?action={action}', data or {}, format='json', **extra)


class DispatchTestCase(AccountProxyTestCase):
    def test_every_action_has_a_handler(self):
        self.assertEqual(set(ACTION_HANDLERS), set(AccountAction))

    def test_unknown_action(self):
        response = self.action('delete_everything')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'success': False, 'message': 'Invalid action.'})

    def test_missing_action(self):
        response = self.client.post(URL, {}, format='json')

        self.assertEqual(response.json(), {'success': False, 'message': 'Invalid action.'})

    def test_preflight(self):
        response = self.client.options(f'{URL}?action=login', HTTP_ORIGIN='https://www.example.com')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Access-Control-Allow-Origin'], 'https://www.example.com')
        self.assertEqual(response['Access-Control-Allow-Methods'], 'POST, OPTIONS')

    def test_unlisted_origin(self):
        response = self.action('login', {}, HTTP_ORIGIN='http://localhost:9999')

        self.assertFalse(response.has_header('Access-Control-Allow-Origin'))

    def test_form_fields_are_accepted(self):
        response = self.client.post(
            f'{URL}?action=login',
            {'username': 'driver', 'password': 'testpass123'},
            format='multipart',
        )

        self.assertTrue(response.json()['success'])

    def test_urlencoded_form_is_accepted(self):
        response = self.client.post(
            f'{URL}?action=login',
            'username=driver&password=testpass123',
            content_type='application/x-www-form-urlencoded',
        )

        self.assertTrue(response.json()['success'])

    def test_json_without_json_content_type(self):
        """The body is read as JSON whatever the declared content type"""
        response = self.client.post(
            f'{URL}?action=login',
            '{"username": "driver", "password": "testpass123"}',
            content_type='text/plain',
        )

        self.assertTrue(response.json()['success'])


class LoginTestCase(AccountProxyTestCase):
    def test_login_success_returns_sanitized_user(self):
        response = self.action('login', {'username': 'driver', 'password': 'testpass123'})

        data = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertTrue(data['success'])
        self.assertEqual(data['message'], 'Login successful')
        self.assertEqual(
            set(data['user']),
            {'id', 'email', 'display_name', 'first_name', 'last_name', 'avatar_url'},
        )
        self.assertEqual(data['user']['id'], self.user.pk)
        self.assertEqual(data['user']['display_name'], 'Dana R')
        self.assertTrue(data['user']['avatar_url'].startswith('https://secure.gravatar.com/avatar/'))

    def test_login_with_email(self):
        response = self.action('login', {'username': 'DRIVER@example.com', 'password': 'testpass123'})

        self.assertTrue(response.json()['success'])

    def test_missing_credentials(self):
        response = self.action('login', {'username': 'driver'})

        self.assertEqual(response.json(), {
            'success': False,
            'message': 'Username and password are required.',
        })

    def test_wrong_password_message_has_no_html(self):
        response = self.action('login', {'username': 'driver', 'password': 'nope-nope'})

        data = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertFalse(data['success'])
        self.assertIn('The password you entered for the username driver is incorrect', data['message'])
        self.assertNotIn('<', data['message'])

    def test_unknown_user(self):
        response = self.action('login', {'username': 'ghost', 'password': 'whatever'})

        data = response.json()
        self.assertFalse(data['success'])
        self.assertIn('ghost', data['message'])
        self.assertNotIn('<strong>', data['message'])


class RegisterTestCase(AccountProxyTestCase):
    def test_register_customer(self):
        response = self.action('register', {
            'email': 'new.rider@example.com',
            'username': 'newrider',
            'password': 'secret1',
        })

        self.assertEqual(response.json(), {
            'success': True,
            'message': 'Registration successful! Please log in.',
        })
        user = User.objects.get(username='newrider')
        self.assertEqual(user.email, 'new.rider@example.com')
        self.assertEqual(user.first_name, 'newrider')
        self.assertTrue(user.check_password('secret1'))
        self.assertEqual(user.storefront_profile.display_name, 'newrider')
        self.assertEqual(user.storefront_profile.role, CustomerProfile.ROLE_CUSTOMER)
        self.assertIn('city', user.storefront_profile.billing_address)

    def test_username_defaults_to_email_local_part(self):
        self.action('register', {'email': 'mechanic@example.com', 'password': 'secret1'})

        self.assertTrue(User.objects.filter(username='mechanic', email='mechanic@example.com').exists())

    def test_register_does_not_log_in(self):
        response = self.action('register', {'email': 'solo@example.com', 'password': 'secret1'})

        self.assertNotIn('user', response.json())

    @override_settings(ACCOUNT_PROXY={**ACCOUNT_SETTINGS, 'CUSTOMER_ACCOUNTS_ENABLED': False})
    def test_fallback_to_plain_account(self):
        response = self.action('register', {'email': 'plain@example.com', 'password': 'secret1'})

        self.assertEqual(response.json()['message'], 'Account created successfully.')
        user = User.objects.get(username='plain')
        self.assertEqual(user.storefront_profile.role, CustomerProfile.ROLE_SUBSCRIBER)
        self.assertEqual(user.first_name, 'plain')

    def test_invalid_email(self):
        response = self.action('register', {'email': 'not-an-email', 'password': 'secret1'})

        self.assertEqual(response.json(), {'success': False, 'message': 'Invalid email address.'})

    def test_duplicate_email_creates_nothing(self):
        before = User.objects.count()
        max_id = User.objects.order_by('-pk').first().pk

        response = self.action('register', {
            'email': 'driver@example.com',
            'username': 'someoneelse',
            'password': 'secret1',
        })

        self.assertEqual(response.json(), {
            'success': False,
            'message': 'Account already exists (username or email taken).',
        })
        self.assertEqual(User.objects.count(), before)
        self.assertFalse(User.objects.filter(pk__gt=max_id).exists())

    def test_duplicate_username_creates_nothing(self):
        before = User.objects.count()

        response = self.action('register', {
            'email': 'other@example.com',
            'username': 'driver',
            'password': 'secret1',
        })

        self.assertFalse(response.json()['success'])
        self.assertEqual(User.objects.count(), before)

    def test_short_password(self):
        response = self.action('register', {'email': 'short@example.com', 'password': '12345'})

        self.assertEqual(response.json(), {
            'success': False,
            'message': 'Password must be at least 6 characters.',
        })
        self.assertFalse(User.objects.filter(email='short@example.com').exists())

    def test_invalid_username(self):
        response = self.action('register', {
            'email': 'spaces@example.com',
            'username': 'bad name!',
            'password': 'secret1',
        })

        self.assertEqual(response.json(), {
            'success': False,
            'message': 'Please enter a valid account username.',
        })


class OrdersTestCase(AccountProxyTestCase):
    def create_order(self, days_ago, quantities=(1,), status='completed'):
        order = Order.objects.create(
            customer=self.user,
            status=status,
            total=Decimal('199.98'),
            currency='USD',
            created_at=timezone.now() - timedelta(days=days_ago),
        )
        for index, quantity in enumerate(quantities):
            OrderItem.objects.create(
                order=order,
                product_id=100 + index,
                name=f'Tire {index}',
                quantity=quantity,
                total=Decimal('99.99'),
            )
        return order

    def test_orders_newest_first(self):
        old = self.create_order(days_ago=10)
        new = self.create_order(days_ago=1, quantities=(2, 2))

        response = self.action('get_orders', {'user_id': self.user.pk})

        data = response.json()
        self.assertTrue(data['success'])
        self.assertEqual([o['id'] for o in data['orders']], [new.pk, old.pk])
        first = data['orders'][0]
        self.assertEqual(first['item_count'], 4)
        self.assertEqual(first['total'], '199.98')
        self.assertEqual(first['currency'], 'USD')
        self.assertEqual(first['status'], 'completed')
        self.assertRegex(first['date_created'], r'^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$')

    def test_orders_capped_at_twenty(self):
        for day in range(25):
            self.create_order(days_ago=day)

        response = self.action('get_orders', {'user_id': self.user.pk})

        self.assertEqual(len(response.json()['orders']), 20)

    def test_user_id_from_query_string(self):
        self.create_order(days_ago=1)

        response = self.client.get(URL, {'action': 'get_orders', 'user_id': self.user.pk})

        self.assertEqual(len(response.json()['orders']), 1)

    def test_user_id_required(self):
        response = self.action('get_orders', {})

        self.assertEqual(response.json(), {'success': False, 'message': 'User ID required'})

    @override_settings(ACCOUNT_PROXY={**ACCOUNT_SETTINGS, 'ORDERS_ENABLED': False})
    def test_orders_unavailable(self):
        response = self.action('get_orders', {'user_id': self.user.pk})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'success': False, 'message': 'WooCommerce not active'})


class ProfileTestCase(AccountProxyTestCase):
    def test_get_address(self):
        response = self.action('get_address', {'user_id': self.user.pk})

        data = response.json()
        self.assertTrue(data['success'])
        self.assertEqual(data['billing']['city'], 'Austin')
        self.assertEqual(data['billing']['email'], '')
        self.assertEqual(data['shipping']['postcode'], '73301')
        self.assertIn('address_1', data['shipping'])

    def test_reads_do_not_create_profiles(self):
        bare = User.objects.create_user(username='bare', email='bare@example.com', password='testpass123')

        self.action('login', {'username': 'bare', 'password': 'testpass123'})
        details = self.action('get_details', {'user_id': bare.pk}).json()
        address = self.action('get_address', {'user_id': bare.pk}).json()

        self.assertEqual(details['user']['display_name'], 'bare')
        self.assertEqual(address['billing']['city'], '')
        self.assertFalse(CustomerProfile.objects.filter(user=bare).exists())

    def test_update_creates_missing_profile(self):
        bare = User.objects.create_user(username='bare', email='bare@example.com', password='testpass123')

        self.action('update_details', {'user_id': bare.pk, 'display_name': 'Bare Bones'})

        self.assertEqual(CustomerProfile.objects.get(user=bare).display_name, 'Bare Bones')

    def test_get_address_unknown_user(self):
        response = self.action('get_address', {'user_id': 99999})

        self.assertEqual(response.json(), {'success': False, 'message': 'User not found'})

    def test_get_details(self):
        response = self.action('get_details', {'user_id': self.user.pk})

        self.assertEqual(response.json()['user'], {
            'first_name': 'Dana',
            'last_name': 'Reyes',
            'display_name': 'Dana R',
            'email': 'driver@example.com',
            'avatar_url': response.json()['user']['avatar_url'],
        })

    def test_update_details(self):
        response = self.action('update_details', {
            'user_id': self.user.pk,
            'first_name': '  <b>Danielle</b> ',
            'display_name': 'Danielle R',
            'email': 'Danielle@Example.com',
        })

        data = response.json()
        self.assertTrue(data['success'])
        self.assertEqual(data['message'], 'Account details updated successfully.')
        self.assertEqual(data['user']['first_name'], 'Danielle')
        self.assertEqual(data['user']['display_name'], 'Danielle R')
        self.assertEqual(data['user']['email'], 'danielle@example.com')

        self.user.refresh_from_db()
        self.assertEqual(self.user.last_name, 'Reyes')

    def test_password_change(self):
        response = self.action('update_details', {
            'user_id': self.user.pk,
            'password_current': 'testpass123',
            'password_new': 'brandnew456',
        })

        self.assertTrue(response.json()['success'])
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('brandnew456'))

    def test_wrong_current_password_applies_nothing(self):
        old_hash = self.user.password

        response = self.action('update_details', {
            'user_id': self.user.pk,
            'first_name': 'Changed',
            'email': 'changed@example.com',
            'password_current': 'wrong-password',
            'password_new': 'brandnew456',
        })

        self.assertEqual(response.json(), {'success': False, 'message': 'Current password is incorrect.'})
        self.user.refresh_from_db()
        self.assertEqual(self.user.password, old_hash)
        self.assertEqual(self.user.first_name, 'Dana')
        self.assertEqual(self.user.email, 'driver@example.com')

    def test_email_taken_by_another_user(self):
        User.objects.create_user(username='other', email='other@example.com', password='x' * 8)

        response = self.action('update_details', {
            'user_id': self.user.pk,
            'first_name': 'Changed',
            'email': 'other@example.com',
        })

        self.assertEqual(response.json(), {
            'success': False,
            'message': 'Sorry, that email address is already used!',
        })
        self.user.refresh_from_db()
        self.assertEqual(self.user.first_name, 'Dana')

    def test_update_unknown_user(self):
        response = self.action('update_details', {'user_id': 99999, 'first_name': 'X'})

        self.assertEqual(response.json(), {'success': False, 'message': 'Invalid user ID.'})

from unittest import mock

from connect.models import Broadcast, CompanyProfile, Group, Industry, Notification, Post, Report, Upload, UserSession

from .base import ApiTestCase


class AdminTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.admin = self.make_admin()
        self.ada = self.make_user('ada@example.com', 'Ada', country='Bangladesh', state='Dhaka')
        self.bob = self.make_user('bob@example.com', 'Bob', country='Australia')


class AdminAccessTests(AdminTestCase):
    def test_regular_users_are_forbidden(self):
        self.assertError(self.get('/api/admin/users/', self.ada), 403, "Forbidden")
        self.assertError(self.get('/api/admin/users/'), 401)


class AdminUserTests(AdminTestCase):
    def test_list_excludes_admins(self):
        body = self.get('/api/admin/users/', self.admin).json()
        self.assertEqual({u['id'] for u in body['items']}, {self.ada.id, self.bob.id})

    def test_list_filters_by_country(self):
        body = self.get('/api/admin/users/', self.admin, {'countries': 'Bangladesh'}).json()
        self.assertEqual([u['id'] for u in body['items']], [self.ada.id])

    def test_csv_download(self):
        response = self.get('/api/admin/users/downloads', self.admin)
        self.assertEqual(response['Content-Type'], 'text/csv')
        lines = response.content.decode().strip().splitlines()
        self.assertTrue(lines[0].startswith('ID,Name,Email'))
        self.assertEqual(len(lines), 3)

    def test_filter_options(self):
        body = self.get('/api/admin/users/filters', self.admin).json()
        self.assertEqual(body['countries'], ['Australia', 'Bangladesh'])
        self.assertEqual(body['states'], ['Dhaka'])

    def test_suspend_ends_access(self):
        token = self.token_for(self.ada)
        self.assertEqual(self.get('/api/user/info', token=token).status_code, 200)
        response = self.post(f'/api/admin/users/{self.ada.id}/suspend_user', self.admin)
        self.assertTrue(response.json()['isSuspended'])
        self.assertError(self.get('/api/user/info', token=token), 403)

        self.post(f'/api/admin/users/{self.ada.id}/suspend_user', self.admin)
        self.assertEqual(self.get('/api/user/info', token=token).status_code, 200)

    def test_edit_and_delete_user(self):
        response = self.put(f'/api/admin/users/{self.ada.id}/', self.admin, {'name': 'Ada L'})
        self.assertEqual(response.json()['name'], 'Ada L')
        self.assertError(self.put(f'/api/admin/users/{self.ada.id}/', self.admin, {'gender': 'robot'}), 400)

        self.assertEqual(self.delete(f'/api/admin/users/{self.ada.id}/', self.admin).status_code, 200)
        self.assertError(self.get(f'/api/admin/users/{self.ada.id}/', self.admin), 404)
        self.assertFalse(UserSession.objects.filter(user_id=self.ada.id).exists())

    def test_edit_rejects_a_taken_phone(self):
        self.bob.phone = '+8801700000000'
        self.bob.save()
        response = self.put(f'/api/admin/users/{self.ada.id}/', self.admin, {'phone': '+8801700000000'})
        self.assertError(response, 400, "Phone number already registered.")
        self.ada.refresh_from_db()
        self.assertIsNone(self.ada.phone)

        response = self.put(f'/api/admin/users/{self.bob.id}/', self.admin, {'phone': '+8801700000000'})
        self.assertEqual(response.status_code, 200)

    def test_admins_are_not_managed_here(self):
        self.assertError(self.get(f'/api/admin/users/{self.admin.id}/', self.admin), 404)


class DashboardTests(AdminTestCase):
    def test_details(self):
        body = self.get('/api/admin/dashboard/details', self.admin).json()
        self.assertEqual(body['totalUsers'], 2)
        self.assertEqual(body['suspendedUsers'], 0)

    def test_user_chart(self):
        body = self.get('/api/admin/dashboard/charts/', self.admin, {'type': 'daily'}).json()
        self.assertEqual(sum(row['count'] for row in body['data']), 2)
        self.assertEqual(self.get('/api/admin/dashboard/charts/', self.admin, {'type': 'monthly'}).status_code, 200)
        self.assertError(self.get('/api/admin/dashboard/charts/', self.admin, {'type': 'hourly'}), 400,
                         "invalid chart type")

    def test_country_counts(self):
        body = self.get('/api/admin/dashboard/charts/country_user_count', self.admin).json()
        self.assertEqual({row['name']: row['count'] for row in body['data']}, {'Bangladesh': 1, 'Australia': 1})


class BroadcastTests(AdminTestCase):
    def test_broadcast_reaches_every_user(self):
        response = self.post('/api/admin/broadcast', self.admin, {'title': 'Hello', 'message': 'Welcome all'})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['recipientsCount'], 2)
        self.assertEqual(Notification.objects.filter(type='broadcast').count(), 2)
        self.assertFalse(Notification.objects.filter(user=self.admin).exists())

        history = self.get('/api/admin/broadcasts', self.admin).json()
        self.assertEqual(history['total'], 1)
        broadcast = Broadcast.objects.get()
        self.assertEqual(self.get(f'/api/admin/broadcast/{broadcast.id}', self.admin).json()['title'], 'Hello')

    def test_broadcast_needs_title_and_message(self):
        self.assertError(self.post('/api/admin/broadcast', self.admin, {'title': 'Hi'}), 400,
                         "title and message are required")


class IndustryTests(AdminTestCase):
    def test_create_update_archive(self):
        response = self.post('/api/admin/industries/', self.admin, {'industries': [
            {'name': 'Fintech', 'category': 'connections_and_groups'},
            {'name': 'Retail', 'category': 'showcase'},
        ]})
        self.assertEqual(response.status_code, 201, response.content)
        fintech = Industry.objects.get(name='Fintech')

        counts = self.get('/api/admin/industries/industries_count', self.admin).json()
        self.assertEqual(counts['total'], 2)
        self.assertEqual(counts['categories']['showcase'], 1)

        response = self.put(f'/api/admin/industries/{fintech.id}', self.admin, {'name': 'Finance'})
        self.assertEqual(response.json()['name'], 'Finance')

        self.delete(f'/api/admin/industries/{fintech.id}', self.admin)
        self.assertEqual(self.get('/api/admin/industries/', self.admin).json()['total'], 1)

    def test_invalid_payloads(self):
        self.assertError(self.post('/api/admin/industries/', self.admin, {'industries': []}), 400,
                         "industries cannot be empty")
        self.assertError(self.post('/api/admin/industries/', self.admin, {'industries': [{'name': 'X'}]}), 400,
                         "category cannot be empty")
        self.assertError(self.post('/api/admin/industries/', self.admin, {
            'industries': [{'name': 'X', 'category': 'space'}],
        }), 400, "invalid category")

    def test_invalid_item_skips_image_fetch(self):
        payload = {'industries': [
            {'name': 'Fintech', 'category': 'showcase', 'url': 'https://example.com/f.png'},
            {'name': 'Space', 'category': 'orbit'},
        ]}
        with mock.patch('connect.storage.upload_industry_image') as fetch:
            self.assertError(self.post('/api/admin/industries/', self.admin, payload), 400, "invalid category")
        fetch.assert_not_called()
        self.assertFalse(Upload.objects.exists())
        self.assertFalse(Industry.objects.exists())


class AdminGroupTests(AdminTestCase):
    def setUp(self):
        super().setUp()
        self.group = Group.objects.create(name='Founders', created_by=self.ada)

    def test_toggle_suspend(self):
        response = self.post('/api/admin/groups/toggle_suspend', self.admin, {'groupIds': [self.group.id]})
        self.assertEqual(response.json()['groups'], [{'id': self.group.id, 'isSuspended': True}])
        self.assertTrue(Notification.objects.filter(user=self.ada, type='group_suspended').exists())

        counts = self.get('/api/admin/groups/count', self.admin).json()
        self.assertEqual((counts['total'], counts['suspended']), (1, 1))
        body = self.get('/api/admin/groups/', self.admin, {'status': 'active'}).json()
        self.assertEqual(body['total'], 0)

        self.assertError(self.post('/api/admin/groups/toggle_suspend', self.admin, {'groupIds': []}), 400)

    def test_reported_groups(self):
        Report.objects.create(reporter=self.bob, target_type='group', target_id=self.group.id, reason='spam')
        body = self.get('/api/admin/groups/reported_groups', self.admin).json()
        self.assertEqual([g['id'] for g in body['items']], [self.group.id])
        self.assertEqual(body['items'][0]['reportsCount'], 1)

    def test_export(self):
        response = self.get('/api/admin/groups/export_groups', self.admin)
        lines = response.content.decode().strip().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertIn('Founders', lines[1])

    def test_delete_post(self):
        post = Post.objects.create(group=self.group, user=self.ada, content='Hello')
        response = self.delete(f'/api/admin/groups/{self.group.id}/post/{post.id}/', self.admin)
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Post.objects.filter(id=post.id).exists())


class AdminShowcaseTests(AdminTestCase):
    def setUp(self):
        super().setUp()
        self.company = CompanyProfile.objects.create(owner=self.ada, name='Acme')

    def test_approve_company(self):
        response = self.post('/api/admin/showcase/update_company_status', self.admin, {
            'companyId': self.company.id, 'status': 'approved',
        })
        self.assertEqual(response.json()['status'], 'approved')
        self.assertTrue(Notification.objects.filter(user=self.ada, type='company_approved').exists())
        self.assertError(self.post('/api/admin/showcase/update_company_status', self.admin, {
            'companyId': self.company.id, 'status': 'great',
        }), 400, "invalid status")
        self.assertError(self.post('/api/admin/showcase/update_company_status', self.admin, {
            'companyId': 'acme', 'status': 'approved',
        }), 400, "invalid company id")

        counts = self.get('/api/admin/showcase/profiles_count', self.admin).json()
        self.assertEqual((counts['approved'], counts['pending'], counts['total']), (1, 0, 1))

    def test_admin_archive_locks_owner_out(self):
        self.assertTrue(self.put(f'/api/admin/showcase/{self.company.id}/archive', self.admin).json()['isArchived'])
        self.assertError(self.put(f'/api/showcase/{self.company.id}/archive', self.ada), 403)

    def test_filter_by_status(self):
        CompanyProfile.objects.create(owner=self.bob, name='Beta', status='approved')
        body = self.get('/api/admin/showcase/all', self.admin, {'status': 'pending'}).json()
        self.assertEqual([c['id'] for c in body['items']], [self.company.id])

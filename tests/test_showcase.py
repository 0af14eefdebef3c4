from connect.models import CompanyProfile, CompanyQuestion, Investment, Notification, Report

from .base import ApiTestCase


class ShowcaseTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.owner = self.make_user('owner@example.com', 'Owner')
        self.visitor = self.make_user('visitor@example.com', 'Visitor')

    def make_company(self, owner=None, status='approved', **extra):
        return CompanyProfile.objects.create(owner=owner or self.owner, name=extra.pop('name', 'Acme'),
                                             status=status, **extra)


class CompanyProfileTests(ShowcaseTestCase):
    def test_create_starts_pending(self):
        response = self.post('/api/showcase/create_profile', self.owner, {
            'name': 'Acme', 'tagline': 'Rockets', 'fundingGoal': '250000',
        })
        self.assertEqual(response.status_code, 201, response.content)
        body = response.json()
        self.assertEqual(body['status'], 'pending')
        self.assertTrue(body['isOwner'])

        self.assertError(self.post('/api/showcase/create_profile', self.owner, {'name': ' '}), 400,
                         "company name is required")
        self.assertError(self.post('/api/showcase/create_profile', self.owner, {
            'name': 'Acme', 'fundingGoal': 'lots',
        }), 400, "invalid amount")
        for goal in ('NaN', 'Infinity', '1e30', -5):
            self.assertError(self.post('/api/showcase/create_profile', self.owner, {
                'name': 'Acme', 'fundingGoal': goal,
            }), 400, "invalid amount")
        self.assertError(self.post('/api/showcase/create_profile', self.owner, {
            'name': 'Acme', 'logoId': 'abc',
        }), 400, "invalid logo id")
        self.assertEqual(CompanyProfile.objects.count(), 1)

    def test_unapproved_company_is_hidden_from_others(self):
        company = self.make_company(status='pending')
        self.assertError(self.get(f'/api/showcase/{company.id}/', self.visitor), 404)
        self.assertEqual(self.get(f'/api/showcase/{company.id}/', self.owner).status_code, 200)

    def test_views_count_only_visitors(self):
        company = self.make_company()
        self.get(f'/api/showcase/{company.id}/', self.owner)
        self.assertEqual(self.get(f'/api/showcase/{company.id}/', self.visitor).json()['views'], 1)

    def test_editing_rejected_company_resubmits(self):
        company = self.make_company(status='rejected')
        self.assertError(self.put(f'/api/showcase/{company.id}/', self.visitor, {'name': 'Mine'}), 403)
        response = self.put(f'/api/showcase/{company.id}/', self.owner, {'tagline': 'Better'})
        self.assertEqual(response.json()['status'], 'pending')

    def test_archive_toggle(self):
        company = self.make_company()
        self.assertTrue(self.put(f'/api/showcase/{company.id}/archive', self.owner).json()['isArchived'])
        self.assertEqual(self.get('/api/showcase/archived', self.owner).json()['total'], 1)
        self.assertEqual(self.get('/api/showcase/my_profiles', self.owner).json()['total'], 0)
        self.assertError(self.get(f'/api/showcase/{company.id}/', self.visitor), 404)

        CompanyProfile.objects.filter(id=company.id).update(archived_by_admin=True)
        self.assertError(self.put(f'/api/showcase/{company.id}/archive', self.owner), 403)

    def test_like_bookmark_and_explore(self):
        company = self.make_company()
        response = self.post(f'/api/showcase/{company.id}/like', self.visitor)
        self.assertEqual(response.json(), {'isLiked': True, 'likesCount': 1})
        self.assertTrue(Notification.objects.filter(user=self.owner, type='company_like').exists())

        self.assertTrue(self.post(f'/api/showcase/{company.id}/bookmark', self.visitor).json()['isBookmarked'])
        self.assertEqual(self.get('/api/showcase/bookmarks', self.visitor).json()['total'], 1)

        explore = self.get('/api/showcase/explore', self.visitor).json()
        self.assertEqual([c['id'] for c in explore['items']], [company.id])
        self.assertEqual(self.get('/api/showcase/explore', self.owner).json()['total'], 0)

    def test_trending_orders_by_views_and_likes(self):
        quiet = self.make_company(name='Quiet')
        busy = self.make_company(name='Busy', views=10)
        trending = self.get('/api/showcase/trending', self.visitor).json()
        self.assertEqual([c['id'] for c in trending['items']], [busy.id, quiet.id])

    def test_search_investors(self):
        investor = self.make_user('inv@example.com', 'Ivy', looking_for='Investor')
        response = self.get('/api/showcase/investors', self.owner).json()
        self.assertEqual([u['id'] for u in response['items']], [investor.id])

    def test_invite_requires_approval(self):
        pending = self.make_company(status='pending')
        self.assertError(self.post(f'/api/showcase/{pending.id}/invite', self.owner,
                                   {'userIds': [self.visitor.id]}), 400)
        company = self.make_company()
        response = self.post(f'/api/showcase/{company.id}/invite', self.owner, {'userIds': [self.visitor.id]})
        self.assertEqual(response.json()['invited'], [self.visitor.id])


class QuestionTests(ShowcaseTestCase):
    def test_question_and_reply(self):
        company = self.make_company()
        response = self.post(f'/api/showcase/{company.id}/questions', self.visitor, {'question': 'Revenue?'})
        self.assertEqual(response.status_code, 201)
        question_id = response.json()['id']
        self.assertTrue(Notification.objects.filter(user=self.owner, type='company_question').exists())

        response = self.post(f'/api/showcase/question/{question_id}/replies', self.owner, {'reply': 'Growing'})
        self.assertEqual(response.status_code, 201)
        self.assertTrue(Notification.objects.filter(user=self.visitor, type='question_reply').exists())
        replies = self.get(f'/api/showcase/question/{question_id}/replies', self.visitor).json()
        self.assertEqual([r['reply'] for r in replies['items']], ['Growing'])

    def test_archived_questions_hidden_from_public_list(self):
        company = self.make_company()
        question = CompanyQuestion.objects.create(company=company, user=self.visitor, question='Why?')
        stranger = self.make_user('stranger@example.com')
        self.assertError(self.put(f'/api/showcase/question/{question.id}/archive', stranger), 403)

        self.assertTrue(self.put(f'/api/showcase/question/{question.id}/archive', self.owner).json()['isArchived'])
        self.assertEqual(self.get(f'/api/showcase/{company.id}/questions', self.visitor).json()['total'], 0)
        self.assertEqual(self.get(f'/api/showcase/{company.id}/all_questions', self.owner).json()['total'], 1)
        self.assertError(self.get(f'/api/showcase/{company.id}/all_questions', self.visitor), 403)

    def test_empty_question(self):
        company = self.make_company()
        self.assertError(self.post(f'/api/showcase/{company.id}/questions', self.visitor, {'question': ''}), 400,
                         "question cannot be empty")


class InvestmentTests(ShowcaseTestCase):
    def test_interest_approval_flow(self):
        company = self.make_company()
        self.assertError(self.post(f'/api/showcase/{company.id}/invest', self.owner, {'amount': 10}), 400)

        response = self.post(f'/api/showcase/{company.id}/invest', self.visitor, {'amount': 5000, 'message': 'Hi'})
        self.assertEqual(response.status_code, 201)
        investment_id = response.json()['id']
        self.assertTrue(Notification.objects.filter(user=self.owner, type='investment_interest').exists())

        pending = self.get('/api/showcase/investments/pending', self.owner).json()
        self.assertEqual([i['id'] for i in pending['items']], [investment_id])

        self.assertError(self.put(f'/api/showcase/investments/{investment_id}', self.owner, {'status': 'maybe'}),
                         400, "invalid status")
        response = self.put(f'/api/showcase/investments/{investment_id}', self.owner, {'status': 'approved'})
        self.assertEqual(response.json()['status'], 'approved')
        self.assertTrue(Notification.objects.filter(user=self.visitor, type='investment_approved').exists())

        self.assertEqual(self.get(f'/api/showcase/{company.id}/investors', self.visitor).json()['total'], 1)
        self.assertEqual(self.get('/api/showcase/invested', self.visitor).json()['total'], 1)
        self.assertEqual(self.get(f'/api/showcase/{company.id}/my_investment', self.visitor).json()['status'],
                         'approved')
        self.assertError(self.post(f'/api/showcase/{company.id}/invest', self.visitor, {'amount': 1}), 400,
                         "Your investment is already approved")

    def test_only_owner_answers(self):
        company = self.make_company()
        investment = Investment.objects.create(company=company, investor=self.visitor)
        self.assertError(self.put(f'/api/showcase/investments/{investment.id}', self.visitor,
                                  {'status': 'approved'}), 404)

    def test_amount_must_be_a_finite_number(self):
        company = self.make_company()
        for amount in ('NaN', 'Infinity', '-Infinity', '1e30', -1):
            self.assertError(self.post(f'/api/showcase/{company.id}/invest', self.visitor, {'amount': amount}),
                             400, "invalid amount")
        self.assertFalse(Investment.objects.exists())

        response = self.post(f'/api/showcase/{company.id}/invest', self.visitor, {'amount': '1234.567'})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(str(Investment.objects.get().amount), '1234.57')


class CompanyReportTests(ShowcaseTestCase):
    def test_report_is_filed_under_showcase(self):
        company = self.make_company()
        admin = self.make_admin()
        response = self.post(f'/api/showcase/{company.id}/report', self.visitor, {'reason': 'scam'})
        self.assertEqual(response.status_code, 201)
        self.assertTrue(Report.objects.filter(target_type='showcase', target_id=company.id).exists())

        reported = self.get('/api/admin/showcase/all', admin, {'reported': 'true'}).json()
        self.assertEqual([c['id'] for c in reported['items']], [company.id])
        self.assertEqual(self.get(f'/api/admin/showcase/{company.id}/', admin).json()['reportsCount'], 1)

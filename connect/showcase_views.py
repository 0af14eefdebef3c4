import logging
from decimal import Decimal, InvalidOperation

from django.db.models import Count, F, Q
from django.http import JsonResponse
from django.shortcuts import get_object_or_404

from .decorators import api_view, auth_required
from .errors import ClientError, int_list, int_or_none, parse_json_body, respond_client_error
from .filters import filters_or_client_error, paginated
from .models import (
    Block, Bookmark, CompanyLike, CompanyProfile, CompanyQuestion, Industry, Investment,
    QuestionReply, Upload, User,
)
from .notifications import notify
from .serializers import (
    serialize_company, serialize_investment, serialize_question, serialize_reply, serialize_user_brief,
)
from .views import create_report


logger = logging.getLogger(__name__)

MAX_AMOUNT = Decimal(10) ** 12
CENTS = Decimal('0.01')

EDITABLE_FIELDS = {
    'name': 'name',
    'tagline': 'tagline',
    'description': 'description',
    'website': 'website',
    'country': 'country',
}


def _companies():
    return CompanyProfile.objects.select_related('owner__profile_image', 'industry', 'logo')


def _public_companies():
    return _companies().filter(status='approved', is_archived=False)


def _visible_company(request, company_id):
    """Approved companies are visible to everyone, the rest only to the owner."""
    company = get_object_or_404(_companies(), id=company_id)
    if company.owner_id != request.user.id and (company.status != 'approved' or company.is_archived):
        raise ClientError(404, "company not found")
    return company


def _own_company(request, company_id):
    company = get_object_or_404(_companies(), id=company_id)
    if company.owner_id != request.user.id:
        raise ClientError(403, "You are not the owner of this company")
    return company


def _amount(value):
    """Parse a money amount that fits a DecimalField(max_digits=14, decimal_places=2)."""
    if value in (None, ''):
        return None
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ClientError(400, "invalid amount", f"amount {value!r} is not a number")
    if not amount.is_finite() or amount < 0 or amount >= MAX_AMOUNT:
        raise ClientError(400, "invalid amount", f"amount {value!r} out of range")
    return amount.quantize(CENTS)


def _apply_company_data(company, data):
    for key, attr in EDITABLE_FIELDS.items():
        if key in data:
            setattr(company, attr, (data[key] or '').strip())
    if 'industryId' in data:
        industry_id = int_or_none(data['industryId'], "invalid industry id")
        company.industry = (
            get_object_or_404(Industry, id=industry_id, archived_at__isnull=True)
            if industry_id is not None else None
        )
    if 'logoId' in data:
        logo_id = int_or_none(data['logoId'], "invalid logo id")
        company.logo = get_object_or_404(Upload, id=logo_id, binary_type='image') if logo_id is not None else None
    if 'fundingGoal' in data:
        company.funding_goal = _amount(data['fundingGoal'])
    if not company.name:
        raise ClientError(400, "company name is required")


def _search(queryset, filters):
    if filters.industries:
        queryset = queryset.filter(industry_id__in=filters.industries)
    if filters.countries:
        queryset = queryset.filter(country__in=filters.countries)
    if filters.search_text:
        queryset = queryset.filter(
            Q(name__icontains=filters.search_text) | Q(tagline__icontains=filters.search_text)
        )
    return queryset


def _company_list(request, queryset):
    filters = filters_or_client_error(request)
    queryset = _search(queryset, filters)
    return JsonResponse(paginated(queryset, filters, lambda c: serialize_company(c, request.user)))


# ============================================================================
# COMPANY PROFILES
# ============================================================================

@api_view("POST")
@auth_required
def create_company(request):
    company = CompanyProfile(owner=request.user)
    _apply_company_data(company, parse_json_body(request))
    company.save()
    logger.info(f"company {company.id} created by user {request.user.id}")
    return JsonResponse(serialize_company(company, request.user), status=201)


@api_view("GET", "PUT", "DELETE")
@auth_required
def company_detail(request, company_id):
    if request.method == "GET":
        company = _visible_company(request, company_id)
        if company.owner_id != request.user.id:
            CompanyProfile.objects.filter(id=company.id).update(views=F('views') + 1)
            company.refresh_from_db(fields=['views'])
        return JsonResponse(serialize_company(company, request.user))

    company = _own_company(request, company_id)
    if request.method == "DELETE":
        company.delete()
        return JsonResponse({"message": "success"})

    _apply_company_data(company, parse_json_body(request))
    # edits go back to review
    if company.status == 'rejected':
        company.status = 'pending'
    company.save()
    return JsonResponse(serialize_company(company, request.user))


@api_view("PUT")
@auth_required
def toggle_archive_company(request, company_id):
    company = _own_company(request, company_id)
    if company.archived_by_admin:
        return respond_client_error(request, "archived by admin", 403, "This company was archived by an admin")
    company.is_archived = not company.is_archived
    company.save(update_fields=['is_archived', 'updated_at'])
    return JsonResponse({"isArchived": company.is_archived})


@api_view("POST")
@auth_required
def toggle_company_like(request, company_id):
    company = _visible_company(request, company_id)
    like, created = CompanyLike.objects.get_or_create(company=company, user=request.user)
    if not created:
        like.delete()
    else:
        notify(
            company.owner, 'company_like', "New like",
            f"{request.user.name} liked {company.name}",
            actor=request.user, data={"companyId": company.id},
        )
    return JsonResponse({"isLiked": created, "likesCount": company.likes.count()})


@api_view("POST")
@auth_required
def toggle_bookmark(request, company_id):
    company = _visible_company(request, company_id)
    bookmark, created = Bookmark.objects.get_or_create(company=company, user=request.user)
    if not created:
        bookmark.delete()
    return JsonResponse({"isBookmarked": created})


@api_view("GET")
@auth_required
def bookmarks(request):
    return _company_list(request, _public_companies().filter(bookmarks__user=request.user))


@api_view("POST")
@auth_required
def report_company(request, company_id):
    company = _visible_company(request, company_id)
    return create_report(request, 'showcase', company.id, parse_json_body(request))


@api_view("GET")
@auth_required
def explore_companies(request):
    return _company_list(request, _public_companies().exclude(owner=request.user))


@api_view("GET")
@auth_required
def trending_companies(request):
    queryset = _public_companies().annotate(
        likes_count=Count('likes', distinct=True)
    ).annotate(
        score=F('views') + F('likes_count')
    ).order_by('-score', '-created_at')
    return _company_list(request, queryset)


@api_view("GET")
@auth_required
def my_companies(request):
    return _company_list(request, _companies().filter(owner=request.user, is_archived=False))


@api_view("GET")
@auth_required
def archived_companies(request):
    return _company_list(request, _companies().filter(owner=request.user, is_archived=True))


@api_view("GET")
@auth_required
def search_investors(request):
    filters = filters_or_client_error(request)
    queryset = (
        User.objects.filter(is_active=True, is_suspended=False, looking_for__iexact='investor')
        .exclude(id=request.user.id)
        .select_related('profile_image')
        .order_by('name', 'id')
    )
    if filters.search_text:
        queryset = queryset.filter(name__icontains=filters.search_text)
    return JsonResponse(paginated(queryset, filters, serialize_user_brief))


@api_view("POST")
@auth_required
def invite_to_company(request, company_id):
    company = _own_company(request, company_id)
    if company.status != 'approved':
        return respond_client_error(request, "not approved", 400, "Only approved companies can be shared")

    ids = set(int_list(parse_json_body(request).get('userIds'))) - {request.user.id}
    invited = []
    for user in User.objects.filter(id__in=ids):
        if Block.between(request.user, user):
            continue
        notify(
            user, 'company_invite', "Company showcase",
            f"{request.user.name} invited you to view {company.name}",
            actor=request.user, data={"companyId": company.id},
        )
        invited.append(user.id)
    return JsonResponse({"invited": invited})


# ============================================================================
# QUESTIONS & REPLIES
# ============================================================================

def _questions(company):
    return company.questions.select_related('user__profile_image')


@api_view("GET", "POST")
@auth_required
def company_questions(request, company_id):
    company = _visible_company(request, company_id)

    if request.method == "POST":
        text = (parse_json_body(request).get('question') or '').strip()
        if not text:
            raise ClientError(400, "question cannot be empty")
        question = CompanyQuestion.objects.create(company=company, user=request.user, question=text)
        notify(
            company.owner, 'company_question', "New question",
            f"{request.user.name} asked a question about {company.name}",
            actor=request.user, data={"companyId": company.id, "questionId": question.id},
        )
        return JsonResponse(serialize_question(question), status=201)

    filters = filters_or_client_error(request)
    queryset = _questions(company).filter(is_archived=False)
    return JsonResponse(paginated(queryset, filters, serialize_question))


@api_view("GET")
@auth_required
def all_company_questions(request, company_id):
    company = _own_company(request, company_id)
    filters = filters_or_client_error(request)
    return JsonResponse(paginated(_questions(company), filters, serialize_question))


def _question(request, question_id):
    question = get_object_or_404(
        CompanyQuestion.objects.select_related('company', 'user__profile_image'), id=question_id
    )
    _visible_company(request, question.company_id)
    return question


@api_view("GET", "POST")
@auth_required
def question_replies(request, question_id):
    question = _question(request, question_id)

    if request.method == "POST":
        text = (parse_json_body(request).get('reply') or '').strip()
        if not text:
            raise ClientError(400, "reply cannot be empty")
        reply = QuestionReply.objects.create(question=question, user=request.user, reply=text)
        notify(
            question.user, 'question_reply', "New reply",
            f"{request.user.name} replied to your question",
            actor=request.user, data={"companyId": question.company_id, "questionId": question.id},
        )
        return JsonResponse(serialize_reply(reply), status=201)

    filters = filters_or_client_error(request)
    queryset = question.replies.filter(is_archived=False).select_related('user__profile_image')
    return JsonResponse(paginated(queryset, filters, serialize_reply))


def _can_moderate(user, company, author_id):
    return user.id in (company.owner_id, author_id)


@api_view("PUT")
@auth_required
def archive_question(request, question_id):
    question = _question(request, question_id)
    if not _can_moderate(request.user, question.company, question.user_id):
        return respond_client_error(request, "not allowed", 403, "You cannot archive this question")
    question.is_archived = not question.is_archived
    question.save(update_fields=['is_archived'])
    return JsonResponse({"isArchived": question.is_archived})


@api_view("PUT")
@auth_required
def archive_reply(request, reply_id):
    reply = get_object_or_404(QuestionReply.objects.select_related('question__company'), id=reply_id)
    if not _can_moderate(request.user, reply.question.company, reply.user_id):
        return respond_client_error(request, "not allowed", 403, "You cannot archive this reply")
    reply.is_archived = not reply.is_archived
    reply.save(update_fields=['is_archived'])
    return JsonResponse({"isArchived": reply.is_archived})


# ============================================================================
# INVESTMENTS
# ============================================================================

def _investments():
    return Investment.objects.select_related('company', 'investor__profile_image')


@api_view("POST")
@auth_required
def express_interest(request, company_id):
    company = _visible_company(request, company_id)
    if company.owner_id == request.user.id:
        return respond_client_error(request, "own company", 400, "You cannot invest in your own company")

    data = parse_json_body(request)
    amount = _amount(data.get('amount'))
    investment, created = Investment.objects.get_or_create(company=company, investor=request.user)
    if not created and investment.status == 'approved':
        return respond_client_error(request, "already approved", 400, "Your investment is already approved")

    investment.amount = amount
    investment.message = (data.get('message') or '').strip()
    investment.status = 'pending'
    investment.save()

    notify(
        company.owner, 'investment_interest', "New investment interest",
        f"{request.user.name} is interested in investing in {company.name}",
        actor=request.user, data={"companyId": company.id, "investmentId": investment.id},
    )
    return JsonResponse(serialize_investment(investment), status=201 if created else 200)


@api_view("GET")
@auth_required
def pending_investments(request):
    filters = filters_or_client_error(request)
    queryset = _investments().filter(company__owner=request.user, status='pending')
    return JsonResponse(paginated(queryset, filters, serialize_investment))


@api_view("PUT")
@auth_required
def answer_investment(request, investment_id):
    investment = get_object_or_404(_investments(), id=investment_id, company__owner=request.user)
    status = parse_json_body(request).get('status')
    if status not in ('approved', 'declined'):
        return respond_client_error(request, f"invalid status {status!r}", 400, "invalid status")

    investment.status = status
    investment.save(update_fields=['status', 'updated_at'])
    notify(
        investment.investor, f'investment_{status}', f"Investment {status}",
        f"Your interest in {investment.company.name} was {status}",
        actor=request.user, data={"companyId": investment.company_id, "investmentId": investment.id},
    )
    return JsonResponse(serialize_investment(investment))


@api_view("GET")
@auth_required
def company_investors(request, company_id):
    company = _visible_company(request, company_id)
    filters = filters_or_client_error(request)
    queryset = _investments().filter(company=company, status='approved')
    return JsonResponse(paginated(queryset, filters, serialize_investment))


@api_view("GET")
@auth_required
def my_investment(request, company_id):
    investment = get_object_or_404(_investments(), company_id=company_id, investor=request.user)
    return JsonResponse(serialize_investment(investment))


@api_view("GET")
@auth_required
def invested_companies(request):
    return _company_list(
        request,
        _companies().filter(investments__investor=request.user, investments__status='approved'),
    )

from fastapi import Request, Response

LANGUAGES = ("ko", "en")
DEFAULT_LANGUAGE = "ko"
LANGUAGE_COOKIE = "typify-language"
LANGUAGE_COOKIE_MAX_AGE = 60 * 60 * 24 * 365

TRANSLATIONS = {
    "en": {
        # Landing
        "nav.features": "Features",
        "nav.pricing": "Pricing",
        "nav.faq": "FAQ",
        "header.signin": "Sign In",
        "header.freetrial": "Free Trial",
        "header.language": "English",
        "hero.badge": "AI-Powered Social Media Management",
        "hero.title": "Your social feed, written by AI in your voice",
        "hero.subtitle": "From personal branding to business marketing. Stop worrying about daily social content. Let AI handle it for you.",
        "hero.cta.primary": "Start Free Trial",
        "hero.cta.secondary": "See Pricing",
        "features.title": "Powerful AI Features for Perfect Social Media Management",
        "features.subtitle": "Manage your social media smarter with cutting-edge AI technology",
        "features.generate.title": "Post generation",
        "features.generate.desc": "Describe a topic and get three ready-to-post drafts tuned to your tone.",
        "features.schedule.title": "Scheduling",
        "features.schedule.desc": "Queue drafts for later and pause or resume them at any time.",
        "features.analytics.title": "Analytics",
        "features.analytics.desc": "Track likes, replies and reposts across your published posts.",
        "pricing.title": "Affordable Pricing for Professional Social Media Management",
        "pricing.subtitle": "Try free for 14 days and experience the difference",
        "pricing.free.name": "Free",
        "pricing.free.description": "10 posts per month to get started",
        "pricing.basic.name": "Basic",
        "pricing.basic.description": "Perfect for individual users",
        "pricing.pro.name": "Pro",
        "pricing.pro.description": "Ideal for businesses and influencers",
        "pricing.popular": "Most Popular",
        "pricing.perMonth": "posts / month",
        "pricing.cta": "Start 14-Day Free Trial",
        "faq.title": "Frequently Asked Questions",
        "faq.subtitle": "Feel free to contact us if you have any questions",
        "faq.q1": "Which platforms are supported?",
        "faq.a1": "X (Twitter) and Threads. You pick one during onboarding.",
        "faq.q2": "Can I change my platform later?",
        "faq.a2": "Your platform is locked for 7 days after onboarding, then you can switch.",
        "faq.q3": "What happens when I reach my monthly limit?",
        "faq.a3": "Generation pauses until the first of next month or until you upgrade.",
        "cta.title": "Ready to Start?",
        "cta.subtitle": "Join thousands who've automated their social media",
        "cta.button": "Start Free Trial",
        "footer.copyright": "© 2026 Typify. All rights reserved.",

        # Login popup
        "login.title": "Sign in to Typify",
        "login.subtitle": "Continue with your Google account",
        "login.google": "Continue with Google",
        "login.waiting": "Waiting for the sign-in window...",
        "login.popupBlocked": "The sign-in popup was blocked. Please allow popups and try again.",
        "login.cancelled": "Login was cancelled.",
        "login.timeout": "Login timed out. Please try again.",
        "login.failed": "Login failed. Please try again.",
        "login.success": "Signed in! Redirecting...",
        "callback.success": "Login successful. This window will close shortly.",
        "callback.error": "Login failed. This window will close shortly.",

        # Dashboard
        "dashboard.title": "Dashboard",
        "dashboard.welcome": "Welcome back",
        "dashboard.generate": "Generate",
        "dashboard.posts": "Posts",
        "dashboard.schedule": "Schedule",
        "dashboard.analytics": "Analytics",
        "dashboard.settings": "Settings",
        "dashboard.logout": "Log out",
        "dashboard.thisMonth": "This month",
        "dashboard.thisWeek": "This week",
        "dashboard.engagement": "Avg. engagement",
        "dashboard.usage": "Monthly usage",
        "dashboard.nextReset": "Resets in",
        "dashboard.recentPosts": "Recent posts",
        "dashboard.noPosts": "No posts yet. Generate your first one!",
        "dashboard.limitReached": "You have reached your monthly limit.",

        # Generate
        "generate.topic": "Topic",
        "generate.tone": "Tone",
        "generate.platform": "Platform",
        "generate.length": "Length",
        "generate.hashtags": "Include hashtags",
        "generate.emojis": "Include emojis",
        "generate.audience": "Target audience",
        "generate.cta": "Call to action",
        "generate.schedule": "Schedule for",
        "generate.submit": "Generate posts",
        "generate.copy": "Copy",
        "generate.platformLocked": "Your platform is locked until",

        # Onboarding
        "onboarding.title": "Let's set up your account",
        "onboarding.step1.title": "What's your industry?",
        "onboarding.step2.title": "Choose your tone",
        "onboarding.step3.title": "Select your topics",
        "onboarding.step3.subtitle": "Choose up to 5 topics you'd like to post about",
        "onboarding.step4.title": "Pick your platform",
        "onboarding.step4.subtitle": "You can change it again after 7 days",
        "onboarding.next": "Next",
        "onboarding.back": "Back",
        "onboarding.finish": "Finish",

        # Settings
        "settings.profile": "Profile",
        "settings.name": "Name",
        "settings.timezone": "Timezone",
        "settings.language": "Language",
        "settings.notifications": "Notifications",
        "settings.billing": "Billing",
        "settings.plan": "Current plan",
        "settings.save": "Save changes",
        "settings.saved": "Settings saved",
        "settings.delete": "Delete account",
        "settings.deleteConfirm": "Type DELETE to confirm",

        # Common
        "common.loading": "Loading...",
        "common.error": "Something went wrong",
        "common.save": "Save",
        "common.cancel": "Cancel",
        "common.delete": "Delete",
        "common.edit": "Edit",
        "common.pause": "Pause",
        "common.resume": "Resume",
        "common.all": "All",
        "common.search": "Search",
    },
    "ko": {
        # Landing
        "nav.features": "기능",
        "nav.pricing": "요금제",
        "nav.faq": "FAQ",
        "header.signin": "로그인",
        "header.freetrial": "무료 체험",
        "header.language": "한국어",
        "hero.badge": "AI 기반 소셜미디어 관리",
        "hero.title": "당신의 말투 그대로, AI가 쓰는 SNS",
        "hero.subtitle": "개인 브랜딩부터 비즈니스 마케팅까지. 매일 SNS 콘텐츠 고민 끝. 이제 AI가 대신 해드립니다.",
        "hero.cta.primary": "무료 체험 시작",
        "hero.cta.secondary": "요금제 보기",
        "features.title": "완벽한 SNS 관리를 위한 강력한 AI 기능",
        "features.subtitle": "최신 AI 기술로 소셜미디어를 더 스마트하게 관리하세요",
        "features.generate.title": "게시물 생성",
        "features.generate.desc": "주제만 입력하면 내 톤에 맞춘 게시물 초안 3개를 바로 받아보세요.",
        "features.schedule.title": "예약 발행",
        "features.schedule.desc": "초안을 예약하고 언제든지 일시정지하거나 재개하세요.",
        "features.analytics.title": "분석",
        "features.analytics.desc": "발행된 게시물의 좋아요, 댓글, 리포스트를 확인하세요.",
        "pricing.title": "합리적인 가격으로 전문적인 SNS 관리",
        "pricing.subtitle": "14일 무료 체험으로 먼저 경험해보세요",
        "pricing.free.name": "Free",
        "pricing.free.description": "월 10개 게시물로 시작하기",
        "pricing.basic.name": "Basic",
        "pricing.basic.description": "개인 사용자를 위한 기본 플랜",
        "pricing.pro.name": "Pro",
        "pricing.pro.description": "비즈니스와 인플루언서를 위한 프로 플랜",
        "pricing.popular": "가장 인기",
        "pricing.perMonth": "게시물 / 월",
        "pricing.cta": "14일 무료 체험 시작",
        "faq.title": "자주 묻는 질문",
        "faq.subtitle": "궁금한 점이 있으시면 언제든 문의해주세요",
        "faq.q1": "어떤 플랫폼을 지원하나요?",
        "faq.a1": "X(트위터)와 Threads를 지원합니다. 온보딩에서 하나를 선택합니다.",
        "faq.q2": "나중에 플랫폼을 바꿀 수 있나요?",
        "faq.a2": "온보딩 후 7일 동안은 플랫폼이 고정되며 이후 변경할 수 있습니다.",
        "faq.q3": "월 사용량을 모두 쓰면 어떻게 되나요?",
        "faq.a3": "다음 달 1일 또는 플랜 업그레이드 전까지 생성이 중지됩니다.",
        "cta.title": "시작할 준비가 되셨나요?",
        "cta.subtitle": "이미 수많은 사용자가 SNS를 자동화했습니다",
        "cta.button": "무료 체험 시작",
        "footer.copyright": "© 2026 Typify. All rights reserved.",

        # Login popup
        "login.title": "Typify 로그인",
        "login.subtitle": "Google 계정으로 계속하기",
        "login.google": "Google로 계속하기",
        "login.waiting": "로그인 창을 기다리는 중...",
        "login.popupBlocked": "로그인 팝업이 차단되었습니다. 팝업을 허용한 후 다시 시도해주세요.",
        "login.cancelled": "로그인이 취소되었습니다.",
        "login.timeout": "로그인 시간이 초과되었습니다. 다시 시도해주세요.",
        "login.failed": "로그인에 실패했습니다. 다시 시도해주세요.",
        "login.success": "로그인되었습니다! 이동 중...",
        "callback.success": "로그인 성공. 이 창은 곧 닫힙니다.",
        "callback.error": "로그인 실패. 이 창은 곧 닫힙니다.",

        # Dashboard
        "dashboard.title": "대시보드",
        "dashboard.welcome": "다시 오신 것을 환영합니다",
        "dashboard.generate": "생성",
        "dashboard.posts": "게시물",
        "dashboard.schedule": "예약",
        "dashboard.analytics": "분석",
        "dashboard.settings": "설정",
        "dashboard.logout": "로그아웃",
        "dashboard.thisMonth": "이번 달",
        "dashboard.thisWeek": "이번 주",
        "dashboard.engagement": "평균 참여도",
        "dashboard.usage": "월 사용량",
        "dashboard.nextReset": "초기화까지",
        "dashboard.recentPosts": "최근 게시물",
        "dashboard.noPosts": "아직 게시물이 없습니다. 첫 게시물을 생성해보세요!",
        "dashboard.limitReached": "이번 달 사용량을 모두 사용했습니다.",

        # Generate
        "generate.topic": "주제",
        "generate.tone": "톤",
        "generate.platform": "플랫폼",
        "generate.length": "길이",
        "generate.hashtags": "해시태그 포함",
        "generate.emojis": "이모지 포함",
        "generate.audience": "타깃 독자",
        "generate.cta": "행동 유도 문구",
        "generate.schedule": "예약 시간",
        "generate.submit": "게시물 생성",
        "generate.copy": "복사",
        "generate.platformLocked": "플랫폼 고정 기간:",

        # Onboarding
        "onboarding.title": "계정을 설정해볼까요",
        "onboarding.step1.title": "어떤 분야에서 일하시나요?",
        "onboarding.step2.title": "톤을 선택하세요",
        "onboarding.step3.title": "주제를 선택하세요",
        "onboarding.step3.subtitle": "게시하고 싶은 주제를 최대 5개까지 선택하세요",
        "onboarding.step4.title": "플랫폼을 선택하세요",
        "onboarding.step4.subtitle": "7일 후에 다시 변경할 수 있습니다",
        "onboarding.next": "다음",
        "onboarding.back": "이전",
        "onboarding.finish": "완료",

        # Settings
        "settings.profile": "프로필",
        "settings.name": "이름",
        "settings.timezone": "시간대",
        "settings.language": "언어",
        "settings.notifications": "알림",
        "settings.billing": "결제",
        "settings.plan": "현재 플랜",
        "settings.save": "변경사항 저장",
        "settings.saved": "설정이 저장되었습니다",
        "settings.delete": "계정 삭제",
        "settings.deleteConfirm": "확인하려면 DELETE를 입력하세요",

        # Common
        "common.loading": "로딩 중...",
        "common.error": "문제가 발생했습니다",
        "common.save": "저장",
        "common.cancel": "취소",
        "common.delete": "삭제",
        "common.edit": "수정",
        "common.pause": "일시정지",
        "common.resume": "재개",
        "common.all": "전체",
        "common.search": "검색",
    },
}

def t(key: str, language: str = DEFAULT_LANGUAGE) -> str:
    """Missing keys fall back to English, then to the key itself."""
    table = TRANSLATIONS.get(language, TRANSLATIONS["en"])
    return table.get(key) or TRANSLATIONS["en"].get(key, key)

def normalize_language(value: str | None) -> str | None:
    return value if value in LANGUAGES else None

def detect_language(request: Request) -> str:
    cookie_lang = normalize_language(request.cookies.get(LANGUAGE_COOKIE))
    if cookie_lang:
        return cookie_lang
    accept = request.headers.get("accept-language", "").strip().lower()
    if accept.startswith("ko"):
        return "ko"
    return "en"

def set_language_cookie(response: Response, language: str) -> None:
    response.set_cookie(
        key=LANGUAGE_COOKIE,
        value=language,
        max_age=LANGUAGE_COOKIE_MAX_AGE,
        samesite="lax",
        path="/",
    )

def translator(language: str):
    return lambda key: t(key, language)

"""
Reponses des fournisseurs pour les tests (bangumi.tv, bilibili, biliplus, Mikan)
et extrait du catalogue bangumi-data.
"""

BANGUMI_IMAGE_URL = "https://lain.bgm.tv/r/400/pic/cover/l/65/6f/425998_aB3cD.jpg"

BILIBILI_REVIEW_RESPONSE = {
    "code": 0,
    "message": "success",
    "result": {
        "media": {
            "media_id": 28339735,
            "season_id": 46100,
            "title": "Test Bangumi",
            "type_name": "番剧",
        }
    },
}

BILIBILI_REVIEW_NOT_FOUND = {
    "code": -404,
    "message": "啥都木有",
}

BILIBILI_REVIEW_INTERCEPTED = {
    "code": -412,
    "message": "请求被拦截",
}

BILIPLUS_RATE_LIMITED = {
    "code": -509,
    "message": "请求过于频繁",
}

BILIPLUS_SEASON_RESPONSE = {
    "code": 0,
    "result": {
        "season_id": 46100,
        "section": [
            {
                "id": 1,
                "title": "花絮",
                "episodes": [{"bvid": "BV1aa411c7aa", "title": "花絮1"}],
            },
            {
                "id": 2,
                "title": "PV&其他",
                "episodes": [
                    {"bvid": "BV1xx411c7mD", "title": "PV1"},
                    {"bvid": "BV1yy411c7yy", "title": "PV2"},
                ],
            },
        ],
    },
}

BILIPLUS_SEASON_WITHOUT_PV = {
    "code": 0,
    "result": {
        "season_id": 46100,
        "section": [
            {"id": 1, "title": "花絮", "episodes": [{"bvid": "BV1aa411c7aa"}]},
        ],
    },
}

MIKAN_RSS_XML = b"""<?xml version="1.0" encoding="utf-8"?>
<rss version="2.0">
  <channel>
    <title>Mikan Project - Test Bangumi</title>
    <link>http://mikanani.me/RSS/Bangumi?bangumiId=3310</link>
    <description>Mikan Project - Test Bangumi</description>
    <item>
      <guid isPermaLink="false">[Group] Test Bangumi - 01 [1080p]</guid>
      <link>https://mikanani.me/Home/Episode/abc123</link>
      <title>[Group] Test Bangumi - 01 [1080p]</title>
      <description>[Group] Test Bangumi - 01 [1080p][350.5 MB]</description>
      <pubDate>2024-07-05T23:41:00</pubDate>
      <enclosure type="application/x-bittorrent" length="367525888" url="https://mikanani.me/Download/20240705/abc123.torrent" />
    </item>
    <item>
      <link>https://mikanani.me/Home/Episode/def456</link>
      <title>[Group] Test Bangumi - 02 [1080p]</title>
      <description>[Group] Test Bangumi - 02 [1080p][351.0 MB]</description>
      <pubDate>2024-07-12T23:40:00</pubDate>
    </item>
  </channel>
</rss>
"""

MIKAN_EMPTY_RSS_XML = b"""<?xml version="1.0" encoding="utf-8"?>
<rss version="2.0">
  <channel>
    <title>Mikan Project - Test Bangumi</title>
    <link>http://mikanani.me/RSS/Bangumi?bangumiId=3310</link>
    <description>Mikan Project - Test Bangumi</description>
  </channel>
</rss>
"""

MIKAN_JS_REDIRECT_HTML = (
    "<html><head><script>"
    "window.location.replace('https://mikanani.me/RSS/Bangumi?bangumiId=3310&token=xyz');"
    "</script></head><body></body></html>"
)

MIKAN_PLAIN_HTML = "<html><head><title>Mikan Project</title></head><body>maintenance</body></html>"

BANGUMI_DATA = {
    "siteMeta": {
        "bangumi": {"title": "番组计划", "urlTemplate": "https://bangumi.tv/subject/{{id}}", "type": "info"},
        "bilibili": {"title": "哔哩哔哩", "urlTemplate": "https://www.bilibili.com/bangumi/media/md{{id}}/", "type": "onair"},
        "mikan": {"title": "Mikan Project", "urlTemplate": "https://mikanani.me/Home/Bangumi/{{id}}", "type": "resource"},
    },
    "items": [
        {
            "title": "夏季新番",
            "titleTranslate": {"zh-Hans": ["夏季新番"]},
            "type": "tv",
            "lang": "ja",
            "officialSite": "https://example.jp/summer",
            "begin": "2024-07-05T15:00:00.000Z",
            "end": "",
            "sites": [
                {"site": "mikan", "id": "3310"},
                {"site": "bilibili", "id": "28339735", "begin": "2024-07-05T15:30:00.000Z"},
                {"site": "bangumi", "id": "425998"},
            ],
        },
        {
            "title": "春季新番",
            "type": "tv",
            "lang": "ja",
            "officialSite": "https://example.jp/spring",
            "begin": "2024-04-06T14:00:00.000Z",
            "end": "2024-06-22T14:00:00.000Z",
            "sites": [{"site": "bangumi", "id": "400001"}],
        },
        {
            "title": "长篇连载",
            "type": "tv",
            "lang": "ja",
            "officialSite": "",
            "begin": "2023-10-01T00:00:00.000Z",
            "end": "",
            "sites": [{"site": "bangumi", "id": "390000"}],
        },
        {
            "title": "秋季预定",
            "type": "tv",
            "lang": "ja",
            "officialSite": "",
            "begin": "2024-10-04T15:00:00.000Z",
            "end": "",
            "sites": [],
        },
    ],
}

import pytest

from core.markdown import MarkdownConverter


@pytest.fixture
def converter():
    return MarkdownConverter()


def test_empty_html(converter):
    assert converter.convert_to_markdown("") == ""


def test_headings_and_links_are_absolute(converter):
    html = "<h2>The Attack</h2><p>Read the <a href=\"/euler-rekt/\">post-mortem</a>.</p>"
    md = converter.convert_to_markdown(html, "https://rekt.news/some-article/")
    assert "## The Attack" in md
    assert "[post-mortem](https://rekt.news/euler-rekt/)" in md


def test_boilerplate_is_removed(converter):
    html = "<nav>Menu</nav><p>Body text</p><script>alert(1)</script><div class=\"ads\">Buy</div>"
    md = converter.convert_to_markdown(html)
    assert "Body text" in md
    assert "Menu" not in md
    assert "alert" not in md
    assert "Buy" not in md


def test_images_keep_title_and_drop_empty_src(converter):
    html = '<p><img src="/img/a.png" alt="diagram" title="Flow"></p><p><img src="" alt="gone"></p>'
    md = converter.convert_to_markdown(html, "https://rekt.news/x/")
    assert '![diagram](https://rekt.news/img/a.png "Flow")' in md
    assert "gone" not in md


def test_social_embeds_become_links(converter):
    html = (
        '<blockquote class="twitter-tweet"><p>gm</p>'
        '<a href="https://twitter.com/rektnews/status/1">March 1</a></blockquote>'
        '<div class="youtube-player"></div>'
    )
    md = converter.convert_to_markdown(html)
    assert "[Embedded content: https://twitter.com/rektnews/status/1](https://twitter.com/rektnews/status/1)" in md
    assert "*[Embedded social media content]*" in md


def test_post_process_cleans_up(converter):
    md = converter.post_process("#   Title  \n\n\n\n-   \ntext   \n[]()\n")
    assert md == "# Title\n\ntext"


def test_extract_leading_image(converter):
    result = converter.extract_leading_image("![cover](https://rekt.news/img/cover.png)\n\nFirst paragraph.")
    assert result.extracted_image == "https://rekt.news/img/cover.png"
    assert result.markdown == "First paragraph."


def test_image_not_at_start_is_kept(converter):
    md = "Intro.\n\n![cover](https://rekt.news/img/cover.png)"
    result = converter.extract_leading_image(md)
    assert result.extracted_image is None
    assert result.markdown == md


def test_rekt_article_specific_rules(converter):
    html = (
        '<p><img src="/img/cover.png" alt=""></p>'
        '<div class="comments">Nice hack</div>'
        '<div class="callout"><p>Funds are SAFU</p></div>'
        '<div class="code solidity">function drain() public {}</div>'
        "<p>" + "The protocol lost everything. " * 5 + "</p>"
    )
    result = converter.convert_rekt_article(html, "https://rekt.news/x-rekt/")

    assert result.extracted_image == "https://rekt.news/img/cover.png"
    assert "Nice hack" not in result.markdown
    assert "> Funds are SAFU" in result.markdown
    assert "```solidity\nfunction drain() public {}\n```" in result.markdown
    assert result.markdown.startswith("> Funds are SAFU")


def test_empty_src_is_not_taken_as_leading_image(converter):
    html = '<p><img src="" alt="x"></p>' + "<p>" + "The oracle was manipulated. " * 5 + "</p>"
    result = converter.convert_rekt_article(html, "https://rekt.news/euler-rekt/")

    assert result.extracted_image is None
    assert "https://rekt.news/euler-rekt/" not in result.markdown
    assert result.markdown.startswith("The oracle was manipulated.")


def test_empty_href_is_left_alone(converter):
    md = converter.convert_to_markdown('<p><a href="">x</a> text</p>', "https://rekt.news/euler-rekt/")
    assert "https://rekt.news/euler-rekt/" not in md
    assert "text" in md


def test_blank_line_after_heading_survives(converter):
    md = converter.post_process("## The Attack\n\nFunds drained.")
    assert md == "## The Attack\n\nFunds drained."

import logging
import re
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from markdownify import ATX, MarkdownConverter as BaseMarkdownConverter

from core.models import ConversionResult

logger = logging.getLogger(__name__)

UNWANTED_SELECTOR = "script, style, nav, header, footer, aside, .advertisement, .ads, .social-share"
REKT_UNWANTED_SELECTOR = ".social-share, .newsletter-signup, .related-posts, .comments, #comments"
EMBED_KEYWORDS = ("twitter", "tweet", "instagram", "youtube")
CODE_LANGUAGES = ("solidity", "javascript", "python", "bash")
BLOCK_TAGS = ["p", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "blockquote", "pre"]

LEADING_IMAGE_RE = re.compile(r"^\s*!\[([^\]]*)\]\(([^)]+)\)(?:\s*\n)?")


def _code_language(el) -> Optional[str]:
    code = el.find("code")
    classes = (code.get("class") if code else None) or el.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    for cls in classes:
        if cls.startswith("language-") and len(cls) > len("language-"):
            return cls[len("language-"):]
    return None


class _ArticleMarkdown(BaseMarkdownConverter):
    """markdownify with the article-specific rendering rules."""

    def convert_img(self, el, text, parent_tags):
        src = el.get("src") or ""
        if not src:
            return ""
        alt = el.get("alt") or ""
        title = el.get("title")
        title_part = f' "{title}"' if title else ""
        return f"![{alt}]({src}{title_part})"

    def convert_div(self, el, text, parent_tags):
        if not el.get_text(strip=True):
            return ""
        if "_inline" in parent_tags:
            return text
        # Text-only divs read as paragraphs
        if el.find(BLOCK_TAGS) is None:
            return "\n\n" + text.strip() + "\n\n"
        return text


class MarkdownConverter:
    def __init__(self):
        self.converter = _ArticleMarkdown(
            heading_style=ATX,
            bullets="-",
            strong_em_symbol="*",
            escape_underscores=False,
            code_language_callback=_code_language,
        )

    def convert_to_markdown(self, html: str, base_url: Optional[str] = None) -> str:
        if not html:
            return ""

        soup = BeautifulSoup(html, "lxml")

        for el in soup.select(UNWANTED_SELECTOR):
            el.decompose()

        if base_url:
            for img in soup.select("img[src]"):
                if img["src"] and not img["src"].startswith("http"):
                    img["src"] = urljoin(base_url, img["src"])
            for link in soup.select("a[href]"):
                href = link["href"]
                if href and not href.startswith("http") and not href.startswith("#"):
                    link["href"] = urljoin(base_url, href)

        self._replace_social_embeds(soup)

        markdown = self.converter.convert_soup(soup)
        return self.post_process(markdown)

    def _replace_social_embeds(self, soup: BeautifulSoup):
        embeds = soup.find_all(class_=lambda cls: cls and any(k in cls for k in EMBED_KEYWORDS))
        for embed in embeds:
            anchor = embed.find("a", href=True)
            replacement = soup.new_tag("p")
            if anchor:
                link = soup.new_tag("a", href=anchor["href"])
                link.string = f"Embedded content: {anchor['href']}"
                replacement.append(link)
            else:
                em = soup.new_tag("em")
                em.string = "[Embedded social media content]"
                replacement.append(em)
            embed.replace_with(replacement)

    def post_process(self, markdown: str) -> str:
        # Bullets with nothing after them
        markdown = re.sub(r"^[ \t]*[-*+][ \t]*$", "", markdown, flags=re.M)
        markdown = markdown.replace("[]()", "")
        markdown = re.sub(r"^(#{1,6})[ \t]*(.+?)[ \t]*$", r"\1 \2", markdown, flags=re.M)
        markdown = re.sub(r"```(\w+)?\n*(.+?)\n*```", r"```\1\n\2\n```", markdown, flags=re.S)
        markdown = re.sub(r"[ \t]+$", "", markdown, flags=re.M)
        markdown = re.sub(r"\n{3,}", "\n\n", markdown)
        return markdown.strip()

    def convert_rekt_article(self, html: str, base_url: str) -> ConversionResult:
        soup = BeautifulSoup(html, "lxml")

        for el in soup.select(REKT_UNWANTED_SELECTOR):
            el.decompose()

        for el in soup.select(".highlight, .callout"):
            el.name = "blockquote"
            el.attrs = {}

        for el in soup.select(".code, .solidity, .javascript"):
            lang = next((cls for cls in el.get("class", []) if cls in CODE_LANGUAGES), "")
            pre = soup.new_tag("pre")
            code = soup.new_tag("code", attrs={"class": f"language-{lang}"})
            code.string = el.get_text()
            pre.append(code)
            el.replace_with(pre)

        markdown = self.convert_to_markdown(str(soup), base_url)
        return self.extract_leading_image(markdown)

    def extract_leading_image(self, markdown: str) -> ConversionResult:
        match = LEADING_IMAGE_RE.match(markdown)
        if not match:
            return ConversionResult(markdown=markdown)

        # Drop an optional "title" after the URL
        image_url = match.group(2).split()[0]
        cleaned = LEADING_IMAGE_RE.sub("", markdown, count=1).strip()
        logger.debug(f"Extracted leading image {image_url}")
        return ConversionResult(markdown=cleaned, extracted_image=image_url)

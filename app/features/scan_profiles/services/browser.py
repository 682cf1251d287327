import logging
from typing import List, Optional

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By

from app.features.scan_profiles.utils.urls import normalize_link, same_origin
from app.platform.config import settings

logger = logging.getLogger(__name__)


class SeleniumLinkCrawler:
    """
    Link discovery over one headless Chrome session.

    Use as a context manager so the driver is always quit:

        with SeleniumLinkCrawler() as crawler:
            links = crawler("https://example.com")
    """

    def __init__(self, page_load_timeout: Optional[int] = None):
        self.page_load_timeout = page_load_timeout or settings.CRAWLER_PAGE_LOAD_TIMEOUT
        self.driver = None

    def __enter__(self):
        chrome_options = Options()
        chrome_options.add_argument('--headless')
        chrome_options.add_argument('--no-sandbox')
        chrome_options.add_argument('--disable-dev-shm-usage')

        if settings.CHROMEDRIVER_PATH:
            driver_service = Service(executable_path=settings.CHROMEDRIVER_PATH)
            self.driver = webdriver.Chrome(service=driver_service, options=chrome_options)
        else:
            self.driver = webdriver.Chrome(options=chrome_options)

        self.driver.set_page_load_timeout(self.page_load_timeout)
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.driver is not None:
            self.driver.quit()
            self.driver = None
        return False

    def __call__(self, url: str) -> List[str]:
        """
        Load a page and return its same-origin links, fragments stripped,
        in document order without duplicates.

        Raises:
            WebDriverException: the page could not be loaded
        """
        if self.driver is None:
            raise RuntimeError("SeleniumLinkCrawler must be used as a context manager")

        self.driver.get(url)

        links = []
        seen = set()
        for element in self.driver.find_elements(By.TAG_NAME, "a"):
            try:
                href = element.get_attribute("href")
            except WebDriverException:
                # Element went stale while the page was still rendering
                continue
            if not href:
                continue
            href = normalize_link(href)
            if href in seen or not same_origin(href, url):
                continue
            seen.add(href)
            links.append(href)

        logger.info(f"Found {len(links)} same-origin links on {url}")
        return links

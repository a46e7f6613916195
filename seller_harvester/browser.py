"""Selenium implementation of the page probe and auxiliary tab contracts"""

import logging
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from selenium import webdriver
from selenium.common.exceptions import (
    ElementClickInterceptedException,
    NoSuchWindowException,
    WebDriverException,
)
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.action_chains import ActionChains
from selenium.webdriver.common.by import By
from selenium.webdriver.common.keys import Keys
from webdriver_manager.chrome import ChromeDriverManager

from .config import HEADERS, Selectors
from .models import BreadcrumbStep, SellerFacet
from .probe import AuxiliaryContext, PageProbe

logger = logging.getLogger(__name__)

DEFAULT_TEXT_TAGS = "a,button,span,div"

# Returns the matching element with the shortest text, i.e. the innermost one,
# so a wrapper div containing the whole page never wins over the actual link.
FIND_BY_TEXT_SCRIPT = """
const target = arguments[0].trim().toLowerCase();
let best = null;
let bestLength = Infinity;
for (const el of document.querySelectorAll(arguments[1])) {
  const text = (el.textContent || "").trim().toLowerCase();
  if (text.includes(target) && text.length < bestLength) {
    best = el;
    bestLength = text.length;
  }
}
return best;
"""


def create_driver(headless: bool = False, debugger_address: str = None) -> webdriver.Chrome:
    """Start Chrome, or attach to a running one started with --remote-debugging-port"""
    chrome_options = Options()
    if debugger_address:
        # Attaching to the user's own session; launch flags do not apply
        chrome_options.add_experimental_option("debuggerAddress", debugger_address)
        logger.info(f"Attaching to Chrome at {debugger_address}...")
    else:
        if headless:
            chrome_options.add_argument('--headless=new')
        chrome_options.add_argument('--disable-gpu')
        chrome_options.add_argument('--no-sandbox')
        chrome_options.add_argument('--disable-dev-shm-usage')
        chrome_options.add_argument('--disable-popup-blocking')
        chrome_options.add_argument('--disable-blink-features=AutomationControlled')
        chrome_options.add_experimental_option('excludeSwitches', ['enable-automation'])
        chrome_options.add_experimental_option('useAutomationExtension', False)
        chrome_options.add_argument(f'user-agent={HEADERS["User-Agent"]}')
        logger.info("Initializing Selenium WebDriver...")

    service = Service(ChromeDriverManager().install())
    driver = webdriver.Chrome(service=service, options=chrome_options)

    if not debugger_address:
        # Hide webdriver property
        driver.execute_cdp_cmd('Page.addScriptToEvaluateOnNewDocument', {
            'source': 'Object.defineProperty(navigator, "webdriver", {get: () => undefined})'
        })
    logger.info("Selenium WebDriver initialized")
    return driver


def html_to_text(html: str) -> str:
    """Flatten markup to text with a line break between elements"""
    if not html:
        return ""
    soup = BeautifulSoup(html, 'html.parser')
    return soup.get_text("\n")


def click_element(driver, element, description: str = "element") -> bool:
    if element is None:
        logger.warning(f"❌ Cannot click {description} - element is missing")
        return False

    logger.info(f"🖱️  Clicking: {description}")
    driver.execute_script("arguments[0].scrollIntoView({block: 'center'});", element)
    try:
        element.click()
    except ElementClickInterceptedException:
        # Sticky headers and overlays sometimes sit on top of the target
        driver.execute_script("arguments[0].click();", element)
    return True


class SeleniumAuxiliaryContext(AuxiliaryContext):
    """A browser tab identified by its window handle"""

    def __init__(self, driver, handle: str, return_handle: str, selectors: Selectors):
        self.driver = driver
        self.handle = handle
        self.return_handle = return_handle
        self.selectors = selectors
        self.closed = False

    def _focus(self):
        if self.driver.current_window_handle != self.handle:
            self.driver.switch_to.window(self.handle)

    def _find(self, selector: str):
        self._focus()
        return self.driver.find_elements(By.CSS_SELECTOR, selector)

    def is_ready(self) -> bool:
        self._focus()
        return self.driver.execute_script("return document.readyState") == "complete"

    def is_product_page(self) -> bool:
        if self._find(self.selectors.add_to_cart):
            return True
        titles = self._find(self.selectors.product_title)
        return bool(titles) and bool(titles[0].text.strip())

    def is_seller_page(self) -> bool:
        return self.has_contact_tab()

    def find_by_text(self, text: str, tags: Optional[str] = None):
        self._focus()
        return self.driver.execute_script(FIND_BY_TEXT_SCRIPT, text, tags or DEFAULT_TEXT_TAGS)

    def follow(self, element):
        self._focus()
        click_element(self.driver, element, "seller link")

    def current_url(self) -> str:
        self._focus()
        return self.driver.current_url

    def has_contact_tab(self) -> bool:
        return bool(self._find(self.selectors.contact_tab))

    def open_contact_tab(self) -> bool:
        tabs = self._find(self.selectors.contact_tab)
        if not tabs:
            return False
        return click_element(self.driver, tabs[0], "Contact tab")

    def contact_text(self) -> str:
        panels = self._find(self.selectors.contact_content)
        if not panels:
            return ""
        return html_to_text(panels[0].get_attribute("innerHTML"))

    def close(self):
        if self.closed:
            return
        self.closed = True
        try:
            if self.handle in self.driver.window_handles:
                self.driver.switch_to.window(self.handle)
                self.driver.close()
                logger.info("🔒 Closed seller tab")
        except NoSuchWindowException:
            logger.debug("Seller tab was already gone")
        finally:
            self.driver.switch_to.window(self.return_handle)


class SeleniumPageProbe(PageProbe):
    """Probe for the main category listing tab"""

    def __init__(self, driver, selectors: Selectors = None):
        self.driver = driver
        self.selectors = selectors or Selectors()
        self.main_handle = driver.current_window_handle

    def _focus(self):
        if self.driver.current_window_handle != self.main_handle:
            self.driver.switch_to.window(self.main_handle)

    def _find(self, selector: str):
        self._focus()
        return self.driver.find_elements(By.CSS_SELECTOR, selector)

    def _click(self, selector: str, description: str) -> bool:
        elements = self._find(selector)
        if not elements:
            logger.warning(f"Element not found: {selector}")
            return False
        return click_element(self.driver, elements[0], description)

    def _facet_selector(self, facet_id: str) -> str:
        return f'input[{self.selectors.facet_attribute}="{self.selectors.facet_prefix}{facet_id}"]'

    def _to_facet(self, element) -> SellerFacet:
        attribute = element.get_attribute(self.selectors.facet_attribute) or ""
        facet_id = attribute[len(self.selectors.facet_prefix):] \
            if attribute.startswith(self.selectors.facet_prefix) else attribute
        out_of_stock = self.selectors.out_of_stock_marker in facet_id
        disabled = not element.is_enabled() or element.get_attribute("aria-disabled") == "true"
        return SellerFacet(id=facet_id, is_selectable=not (out_of_stock or disabled))

    def is_modal_open(self) -> bool:
        return bool(self._find(self.selectors.modal))

    def is_seller_panel_open(self) -> bool:
        return len(self._find(self.selectors.facet_checkbox)) > 1

    def is_listing_page(self) -> bool:
        return bool(self._find(self.selectors.product_card))

    def open_filters(self) -> bool:
        return self._click(self.selectors.filters_menu, "Filters menu")

    def open_seller_panel(self) -> bool:
        return self._click(self.selectors.sold_by_group, "Sold by button")

    def close_modal(self) -> bool:
        if self._click(self.selectors.modal_close, "Close filters"):
            return True
        ActionChains(self.driver).send_keys(Keys.ESCAPE).perform()
        return True

    def list_facets(self) -> List[SellerFacet]:
        return [self._to_facet(el) for el in self._find(self.selectors.facet_checkbox)]

    def checked_facets(self) -> List[SellerFacet]:
        return [self._to_facet(el) for el in self._find(self.selectors.facet_checkbox)
                if el.is_selected()]

    def has_facet(self, facet_id: str) -> bool:
        return bool(self._find(self._facet_selector(facet_id)))

    def set_facet_checked(self, facet_id: str, checked: bool) -> bool:
        elements = self._find(self._facet_selector(facet_id))
        if not elements:
            return False
        if elements[0].is_selected() != checked:
            action = "Checking" if checked else "Unchecking"
            click_element(self.driver, elements[0], f"{action} seller {facet_id}")
        return True

    def apply_filters(self) -> bool:
        return self._click(self.selectors.apply_button, "Apply button")

    def first_product_url(self) -> Optional[str]:
        links = self._find(self.selectors.product_link)
        if not links:
            return None
        return links[0].get_attribute("href")

    def open_auxiliary(self, url: str) -> Optional[SeleniumAuxiliaryContext]:
        self._focus()
        main_handle = self.main_handle
        before = set(self.driver.window_handles)
        try:
            opened = self.driver.execute_script(
                "return window.open(arguments[0], '_blank') !== null;", url)
        except WebDriverException as e:
            logger.error(f"window.open failed: {e}")
            return None

        new_handles = [h for h in self.driver.window_handles if h not in before]
        if not opened or not new_handles:
            return None

        handle = new_handles[0]
        self.driver.switch_to.window(handle)
        return SeleniumAuxiliaryContext(self.driver, handle, main_handle, self.selectors)

    def go_back(self):
        logger.info("↩️  Navigating back")
        self._focus()
        self.driver.back()

    def reload(self):
        logger.info("🔄 Reloading page")
        self._focus()
        self.driver.refresh()

    def category_name(self) -> Optional[str]:
        self._focus()
        soup = BeautifulSoup(self.driver.page_source, 'html.parser')
        title = soup.select_one(self.selectors.category_title)
        if not title:
            return None
        return title.get_text(" ", strip=True) or None

    def breadcrumb(self) -> List[BreadcrumbStep]:
        self._focus()
        soup = BeautifulSoup(self.driver.page_source, 'html.parser')
        base_url = self.driver.current_url
        steps = []
        for link in soup.select(self.selectors.breadcrumb_link):
            name = link.get_text(" ", strip=True)
            if not name:
                continue
            steps.append(BreadcrumbStep(name=name, href=urljoin(base_url, link.get('href', ''))))
        return steps

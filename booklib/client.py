"""Blocking HTTP client for Open Library with resilience patterns."""
import time
import random
import requests
from typing import Optional, Dict, Any
import logging

from booklib.config import Config

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = {429, 500, 502, 503, 504}


class OpenLibraryClient:
    """Client for the Open Library search API with timeouts, retries, and backoff."""
    
    def __init__(
        self, 
        base_url: str = Config.OPENLIBRARY_BASE_URL,
        timeout: int = 10,
        max_retries: int = 3,
        base_backoff: float = 1.0
    ):
        """
        Initialize Open Library client.
        
        Args:
            base_url: Open Library root URL
            timeout: Request timeout in seconds
            max_retries: Maximum number of retry attempts
            base_backoff: Base delay for exponential backoff
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_backoff = base_backoff
        
        # Create session for connection pooling
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})
    
    def search(
        self, 
        query: str, 
        limit: Optional[int] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Search for books.
        
        Args:
            query: Free-text search query
            limit: Maximum results to return (Open Library default when None)
            
        Returns:
            API response JSON or None if all retries failed
        """
        params: Dict[str, Any] = {"q": query}
        if limit:
            params["limit"] = limit
        
        return self._make_request_with_retry(f"{self.base_url}/search.json", params)
    
    def _make_request_with_retry(
        self, 
        url: str, 
        params: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Make HTTP request with retry logic.
        
        Rate limiting, server errors, timeouts and dropped connections are
        retried; other client errors and malformed bodies are not.
        
        Args:
            url: Request URL
            params: Query parameters
            
        Returns:
            Response JSON or None if all retries exhausted
        """
        for attempt in range(1, self.max_retries + 1):
            try:
                logger.info(f"GET {url} (attempt {attempt}/{self.max_retries})")
                response = self.session.get(url, params=params, timeout=self.timeout)
            
            except requests.exceptions.Timeout:
                logger.warning(f"Timeout on attempt {attempt}")
            
            except requests.exceptions.ConnectionError as e:
                logger.warning(f"Connection error on attempt {attempt}: {e}")
            
            else:
                if response.status_code == 200:
                    try:
                        return response.json()
                    except ValueError as e:
                        logger.error(f"Malformed JSON from {url}: {e}")
                        return None
                
                if response.status_code not in RETRYABLE_STATUSES:
                    logger.error(f"Non-retryable status ({response.status_code}) for {url}")
                    return None
                
                logger.warning(f"Retryable status {response.status_code} on attempt {attempt}")
            
            if attempt < self.max_retries:
                self._backoff(attempt - 1)
        
        logger.error(f"All {self.max_retries} attempts failed for {url}")
        return None
    
    def _backoff(self, attempt: int):
        """
        Sleep with exponential backoff and jitter.
        
        Args:
            attempt: Current attempt number (0-indexed)
        """
        # Exponential backoff: base * 2^attempt
        delay = self.base_backoff * (2 ** attempt)
        
        # Add jitter: random value between 0 and delay
        jitter = random.uniform(0, delay)
        total_delay = delay + jitter
        
        logger.info(f"Backing off for {total_delay:.2f} seconds")
        time.sleep(total_delay)
    
    def close(self):
        """Close the session."""
        self.session.close()
    
    def __enter__(self):
        """Context manager entry."""
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
